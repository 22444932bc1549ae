"""
Tests for the HTTP API (`api/`).

Supabase is replaced by in-memory fakes through FastAPI dependency overrides:
the primary project holds auth, access control, integrations and preferences;
the external project holds the lead table.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from io import BytesIO
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from api.dependencies import get_clock, get_primary_client, get_session_registry, get_settings
from api.main import app
from config import Settings
from services.dashboard_service import DashboardSession, SessionRegistry
from services.realtime_service import RealtimeSubscription
from tests.fakes import FakeAsyncClient, FakeSupabase, api_error, async_client_factory, lead_row

NOW = datetime(2025, 3, 15, 18, 0, 0, tzinfo=timezone.utc)
AUTH = {"Authorization": "Bearer token-ana"}


@pytest.fixture
def api(monkeypatch):
    primary = FakeSupabase()
    external = FakeSupabase()
    registry = SessionRegistry()
    settings = Settings(
        supabase_url="https://primary.supabase.co",
        supabase_key="service-key",
        timezone=ZoneInfo("America/Sao_Paulo"),
    )

    app.dependency_overrides[get_primary_client] = lambda: primary
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_session_registry] = lambda: registry
    app.dependency_overrides[get_clock] = lambda: (lambda: NOW)

    def open_session(cls, user_id, integration, tz, clock):
        return cls(user_id, integration, external, tz, clock)

    monkeypatch.setattr(DashboardSession, "open", classmethod(open_session))

    primary.add_user("token-ana", "u1", "ana@example.com")
    primary.add_user("token-admin", "admin-1", "admin@example.com")

    yield SimpleNamespace(
        client=TestClient(app),
        primary=primary,
        external=external,
        registry=registry,
    )

    app.dependency_overrides.clear()


def _approve(primary: FakeSupabase, user_id: str = "u1", email: str = "ana@example.com", role: str = "user") -> None:
    primary.tables.setdefault("user_control", []).append(
        {"user_id": user_id, "email": email, "role": role, "approved": True,
         "approved_by": "admin@example.com", "created_at": "2025-01-02T12:00:00Z"}
    )


def _connect(primary: FakeSupabase) -> None:
    primary.tables["user_integrations"] = [
        {
            "id": 1,
            "user_id": "u1",
            "project_url": "https://ana.supabase.co",
            "anon_key": "anon",
            "selected_table": "leads",
        }
    ]


def _seed_leads(external: FakeSupabase) -> None:
    external.tables["leads"] = [
        lead_row("c1", "2025-03-10T13:00:00Z", qualified=True, converted=True,
                 data_conversao="2025-03-10T15:00:00Z", cliente_nome="Ana"),
        lead_row("c2", "2025-03-12T13:00:00Z", qualified=True),
        lead_row("c3", "2025-03-15T13:00:00Z"),
        lead_row("p1", "2025-03-01T13:00:00Z"),
    ]


def _ready(api) -> None:
    _approve(api.primary)
    _connect(api.primary)
    _seed_leads(api.external)


def test_health_and_root(api) -> None:
    assert api.client.get("/health").json()["status"] == "healthy"
    assert api.client.get("/").json()["docs"] == "/docs"


def test_missing_token_is_rejected(api) -> None:
    response = api.client.get("/api/v1/metrics")

    assert response.status_code == 401
    assert response.json()["action"] == "login"


def test_invalid_token_is_rejected(api) -> None:
    response = api.client.get("/api/v1/me", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401


def test_first_login_is_pending(api) -> None:
    me = api.client.get("/api/v1/me", headers=AUTH)

    assert me.status_code == 200
    assert me.json()["status"] == "Pending"
    assert me.json()["role"] == "user"

    response = api.client.get("/api/v1/metrics", headers=AUTH)
    assert response.status_code == 403
    assert response.json()["action"] == "pending_approval"


def test_metrics_without_integration_asks_for_setup(api) -> None:
    _approve(api.primary)

    response = api.client.get("/api/v1/metrics", headers=AUTH)

    assert response.status_code == 409
    assert response.json()["action"] == "setup"


def test_metrics_for_last_seven_days(api) -> None:
    _ready(api)

    response = api.client.get("/api/v1/metrics", headers=AUTH)

    assert response.status_code == 200
    body = response.json()
    assert body["period"] == "7days"
    assert body["show_change"] is True
    assert body["current"]["conversations"] == 3
    assert body["current"]["conversions"] == 1
    assert body["current"]["qualified"] == 2
    assert body["current"]["lost_leads"] == 2
    assert body["current"]["avg_conversion_time_ms"] == pytest.approx(7_200_000)
    assert body["previous"]["conversations"] == 1
    assert body["conversations_change"] == pytest.approx(200.0)
    assert [step["key"] for step in body["funnel"]] == ["conversations", "qualified", "conversions"]
    assert len(body["comparison"]) == 10
    assert body["executive_summary"][0].startswith("Over the last 7 days, 3 conversations were started")
    assert body["skipped_rows"] == 0


def test_metrics_honour_display_preferences(api) -> None:
    _ready(api)
    api.primary.tables["user_preferences"] = [{"id": 1, "user_id": "u1", "show_conversas": False}]

    body = api.client.get("/api/v1/metrics?period=all", headers=AUTH).json()

    assert body["show_change"] is False
    assert [step["key"] for step in body["funnel"]] == ["qualified", "conversions"]


def test_metrics_custom_period(api) -> None:
    _ready(api)

    body = api.client.get(
        "/api/v1/metrics?period=custom&start=2025-03-12&end=2025-03-15", headers=AUTH
    ).json()

    assert body["period_label"] == "12/03/2025 to 15/03/2025"
    assert body["current"]["conversations"] == 2


def test_custom_period_needs_both_dates(api) -> None:
    _ready(api)

    response = api.client.get("/api/v1/metrics?period=custom&start=2025-03-12", headers=AUTH)

    assert response.status_code == 422


def test_unreachable_project_reports_retry(api) -> None:
    _ready(api)
    api.external.errors["leads"] = api_error("permission denied for table leads", code="42501")

    response = api.client.post("/api/v1/metrics/refresh", headers=AUTH)

    assert response.status_code == 502
    assert response.json()["retry"] is True


def test_refresh_picks_up_new_rows(api) -> None:
    _ready(api)
    api.client.get("/api/v1/metrics", headers=AUTH)
    api.external.tables["leads"].append(lead_row("c4", "2025-03-15T14:00:00Z"))

    cached = api.client.get("/api/v1/metrics", headers=AUTH).json()
    refreshed = api.client.post("/api/v1/metrics/refresh", headers=AUTH).json()

    assert cached["current"]["conversations"] == 3
    assert refreshed["current"]["conversations"] == 4


def test_live_updates_toggle(api, monkeypatch) -> None:
    _ready(api)
    realtime = FakeAsyncClient()

    def subscription(url, key, table, on_change):
        return RealtimeSubscription(url, key, table, on_change, client_factory=async_client_factory(realtime))

    monkeypatch.setattr("services.dashboard_service.RealtimeSubscription", subscription)

    started = api.client.post("/api/v1/metrics/live", headers=AUTH).json()
    stopped = api.client.delete("/api/v1/metrics/live", headers=AUTH).json()

    assert started == {"active": True, "table": "leads"}
    assert stopped == {"active": False, "table": "leads"}
    assert realtime.channels[0].subscribed is False


def test_report_export_download(api) -> None:
    _ready(api)

    response = api.client.get("/api/v1/reports/export?period=30days", headers=AUTH)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert "lead-metrics-report-30-days.xlsx" in response.headers["content-disposition"]
    workbook = load_workbook(BytesIO(response.content))
    assert workbook.sheetnames == ["Summary", "Data"]


def test_preferences_partial_update(api) -> None:
    _approve(api.primary)

    response = api.client.put("/api/v1/preferences", json={"show_desqualificados": False}, headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {
        "show_conversas": True,
        "show_conversoes": True,
        "show_qualificados": True,
        "show_desqualificados": False,
    }
    assert api.client.get("/api/v1/preferences", headers=AUTH).json()["show_desqualificados"] is False


def test_integration_setup_flow(api) -> None:
    _approve(api.primary)

    invalid = api.client.put(
        "/api/v1/integration",
        json={"project_url": "https://example.com", "anon_key": "anon", "selected_table": "leads"},
        headers=AUTH,
    )
    assert invalid.status_code == 422

    saved = api.client.put(
        "/api/v1/integration",
        json={"project_url": "https://ana.supabase.co", "anon_key": "anon", "selected_table": "leads"},
        headers=AUTH,
    )
    assert saved.status_code == 200
    assert saved.json()["configured"] is True

    current = api.client.get("/api/v1/integration", headers=AUTH).json()
    assert current["selected_table"] == "leads"
    assert "anon_key" not in current


def test_saving_integration_closes_dashboard_session(api) -> None:
    _ready(api)
    api.client.get("/api/v1/metrics", headers=AUTH)
    assert api.registry.get("u1") is not None

    api.client.put(
        "/api/v1/integration",
        json={"project_url": "https://ana.supabase.co", "anon_key": "anon", "selected_table": "leads_v2"},
        headers=AUTH,
    )

    assert api.registry.get("u1") is None


def test_remove_integration(api) -> None:
    _ready(api)

    response = api.client.delete("/api/v1/integration", headers=AUTH)

    assert response.json()["configured"] is False
    assert api.client.get("/api/v1/metrics", headers=AUTH).status_code == 409


def test_conversations(api) -> None:
    _ready(api)
    api.external.tables["n8n_chat_histories"] = [
        {"id": 1, "session_id": "5511", "created_at": "2025-03-14T12:00:00Z",
         "message": {"type": "human", "content": "Oi"}},
    ]
    api.external.tables["leads_metricas"] = [{"id": 1, "cliente_id": "5511", "agent_on": True}]

    sessions = api.client.get("/api/v1/conversations/sessions", headers=AUTH).json()
    messages = api.client.get("/api/v1/conversations/5511/messages", headers=AUTH).json()
    disabled = api.client.post("/api/v1/conversations/5511/disable-agent", headers=AUTH)
    missing = api.client.post("/api/v1/conversations/9999/disable-agent", headers=AUTH)

    assert sessions == {"sessions": ["5511"], "total_count": 1}
    assert messages["messages"][0]["content"] == "Oi"
    assert disabled.json() == {"lead_id": "5511", "agent_on": False}
    assert missing.status_code == 404


def test_agent_settings(api) -> None:
    _ready(api)

    assert api.client.get("/api/v1/agent-settings", headers=AUTH).status_code == 404

    api.external.tables["agent_settings"] = [{"id": 7, "agent_prompt": "Be brief."}]
    assert api.client.get("/api/v1/agent-settings", headers=AUTH).json() == {"prompt": "Be brief."}

    updated = api.client.put("/api/v1/agent-settings", json={"prompt": "Be kind."}, headers=AUTH)
    assert updated.json() == {"prompt": "Be kind."}
    assert api.external.tables["agent_settings"][0]["agent_prompt"] == "Be kind."


def test_admin_routes_require_admin(api) -> None:
    _approve(api.primary)

    response = api.client.get("/api/v1/admin/users", headers=AUTH)

    assert response.status_code == 403


def test_admin_approves_and_blocks_users(api) -> None:
    _approve(api.primary, "admin-1", "admin@example.com", role="admin")
    api.primary.tables["user_control"].append(
        {"user_id": "u2", "email": "bia@example.com", "role": "user", "approved": False,
         "created_at": "2025-03-01T12:00:00Z"}
    )
    admin = {"Authorization": "Bearer token-admin"}

    users = api.client.get("/api/v1/admin/users", headers=admin).json()
    approved = api.client.post("/api/v1/admin/users/u2/approve", headers=admin).json()
    blocked = api.client.post("/api/v1/admin/users/u2/block", headers=admin).json()
    own = api.client.post("/api/v1/admin/users/admin-1/block", headers=admin)

    assert users["total_count"] == 2
    assert approved["status"] == "Approved"
    assert approved["approved_by"] == "admin@example.com"
    assert blocked["status"] == "Blocked"
    assert own.status_code == 400


def test_logout_discards_session(api) -> None:
    _ready(api)
    api.client.get("/api/v1/metrics", headers=AUTH)

    response = api.client.post("/api/v1/logout", headers=AUTH)

    assert response.status_code == 204
    assert api.registry.get("u1") is None


def test_metrics_recomputed_on_a_later_day(api) -> None:
    _ready(api)
    clock = {"now": NOW}
    app.dependency_overrides[get_clock] = lambda: (lambda: clock["now"])

    first = api.client.get("/api/v1/metrics?period=today", headers=AUTH).json()
    clock["now"] = NOW + timedelta(days=2)
    later = api.client.get("/api/v1/metrics?period=today", headers=AUTH).json()

    assert first["date_range"]["start"].startswith("2025-03-15T00:00:00")
    assert first["current"]["conversations"] == 1
    assert later["date_range"]["start"].startswith("2025-03-17T00:00:00")
    assert later["current"]["conversations"] == 0
