"""
FastAPI dependencies shared by the routers.

Request flow: bearer token -> signed-in user -> access record (created on
first login, must be approved) -> the user's dashboard session, which needs
a configured integration.
"""

from __future__ import annotations

from datetime import date, datetime, time
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, Query
from supabase import Client  # type: ignore[import-not-found]

from api.errors import PendingApprovalError
from config import Settings, load_settings
from domain.errors import AuthenticationError, AuthorizationError, ConfigurationError, ValidationError
from domain.period import DateRange, Period, default_custom_range
from domain.user_control import UserControl
from repositories.auth_repository import AuthenticatedUser, resolve_user
from repositories.client import create_supabase_client
from repositories.integration_repository import get_integration
from repositories.user_control_repository import ensure_user_control
from services.dashboard_service import (
    Clock,
    DashboardSession,
    PeriodSelection,
    SessionRegistry,
    utc_now,
)

_registry = SessionRegistry()


def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=4)
def _primary_client(url: str, key: str) -> Client:
    return create_supabase_client(url, key)


def get_primary_client(settings: Settings = Depends(get_settings)) -> Client:
    return _primary_client(settings.supabase_url, settings.supabase_key)


def get_session_registry() -> SessionRegistry:
    return _registry


def get_clock() -> Clock:
    return utc_now


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise AuthenticationError("Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")
    return token.strip()


def get_current_user(
    authorization: Optional[str] = Header(None),
    primary: Client = Depends(get_primary_client),
) -> AuthenticatedUser:
    return resolve_user(primary, bearer_token(authorization))


def get_user_control(
    user: AuthenticatedUser = Depends(get_current_user),
    primary: Client = Depends(get_primary_client),
) -> UserControl:
    """Access record of the caller; created as pending on first login."""
    return ensure_user_control(primary, user.user_id, user.email)


def require_approved(control: UserControl = Depends(get_user_control)) -> UserControl:
    if not control.can_access_app:
        raise PendingApprovalError("Your account is waiting for administrator approval")
    return control


def require_admin(control: UserControl = Depends(get_user_control)) -> UserControl:
    if not control.is_admin:
        raise AuthorizationError("Administrator access required")
    return control


def get_dashboard_session(
    user: AuthenticatedUser = Depends(get_current_user),
    control: UserControl = Depends(require_approved),
    primary: Client = Depends(get_primary_client),
    registry: SessionRegistry = Depends(get_session_registry),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> DashboardSession:
    """
    The caller's dashboard session, opened on first use.

    Raises:
        ConfigurationError: if the user has not completed integration setup
    """

    def open_session() -> DashboardSession:
        integration = get_integration(primary, user.user_id)
        if integration is None or not integration.is_configured:
            raise ConfigurationError("Connect your Supabase project to see the dashboard")
        return DashboardSession.open(user.user_id, integration, settings.timezone, clock)

    return registry.get_or_create(user.user_id, open_session)


def get_period_selection(
    period: Period = Query(Period.LAST_7_DAYS, description="today, 7days, 15days, 30days, all or custom"),
    start: Optional[date] = Query(None, description="First day of a custom period (YYYY-MM-DD)"),
    end: Optional[date] = Query(None, description="Last day of a custom period (YYYY-MM-DD)"),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> PeriodSelection:
    """
    Period from the query string. A custom period without dates falls back
    to the last seven days.

    Raises:
        ValidationError: if only one of start/end is given, or start > end
    """

    if period is not Period.CUSTOM:
        return PeriodSelection(period=period)

    tz = settings.timezone
    if start is None and end is None:
        return PeriodSelection(period=period, custom=default_custom_range(clock(), tz))
    if start is None or end is None:
        raise ValidationError("A custom period needs both start and end dates")
    if start > end:
        raise ValidationError("The start date must not be after the end date")

    custom = DateRange(
        start=datetime.combine(start, time.min, tzinfo=tz),
        end=datetime.combine(end, time.max, tzinfo=tz),
    )
    return PeriodSelection(period=period, custom=custom)


__all__ = [
    "bearer_token",
    "get_clock",
    "get_current_user",
    "get_dashboard_session",
    "get_period_selection",
    "get_primary_client",
    "get_session_registry",
    "get_settings",
    "get_user_control",
    "require_admin",
    "require_approved",
]
