"""
Dashboard refresh cycle.

A DashboardSession belongs to one signed-in user. It owns the client for the
user's external project and the snapshot currently shown to them. Refreshes
are triggered by the initial load, the refresh button, realtime change
notifications and period changes, and can overlap.

Overlap handling:
- Every refresh takes a sequence number before fetching.
- When it finishes, its snapshot is applied only if no newer refresh has
  started in the meantime. Otherwise it is dropped and the caller receives
  the snapshot that is currently displayed.

Sessions are created at sign-in through SessionRegistry and discarded at
logout or when the integration changes.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Dict, List, Optional

from supabase import Client  # type: ignore[import-not-found]

from domain.errors import ConfigurationError, ConnectivityError
from domain.integration import Integration
from domain.lead import normalize_lead_rows
from domain.metrics import MetricsReport
from domain.period import (
    DateRange,
    Period,
    get_date_range,
    get_previous_date_range,
    period_length_days,
)
from repositories.client import create_external_client
from repositories.lead_repository import fetch_lead_rows
from services.metrics_aggregator import aggregate
from services.realtime_service import RealtimeSubscription

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class PeriodSelection:
    period: Period = Period.LAST_7_DAYS
    custom: Optional[DateRange] = None


@dataclass(frozen=True, slots=True)
class DashboardSnapshot:
    """A report together with the ranges it was computed for."""

    report: MetricsReport
    selection: PeriodSelection
    date_range: DateRange
    previous_range: Optional[DateRange]
    period_days: int
    skipped_rows: int
    sequence: int
    refreshed_at: datetime


class RefreshSequencer:
    """Issues increasing refresh numbers and tells whether one is still current."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._issued = 0

    def issue(self) -> int:
        with self._lock:
            self._issued += 1
            return self._issued

    def is_latest(self, sequence: int) -> bool:
        with self._lock:
            return sequence == self._issued

    @property
    def last_issued(self) -> int:
        with self._lock:
            return self._issued


class DashboardSession:
    def __init__(
        self,
        user_id: str,
        integration: Integration,
        external_client: Client,
        tz: tzinfo,
        clock: Clock = utc_now,
    ) -> None:
        if not integration.is_configured:
            raise ConfigurationError("Integration is incomplete: project URL, key and table are required")

        self.user_id = user_id
        self.integration = integration
        self.tz = tz
        self._client = external_client
        self._clock = clock
        self._sequencer = RefreshSequencer()
        self._lock = threading.Lock()
        self._snapshot: Optional[DashboardSnapshot] = None
        self._selection = PeriodSelection()
        self._realtime: Optional[RealtimeSubscription] = None

    @classmethod
    def open(cls, user_id: str, integration: Integration, tz: tzinfo, clock: Clock = utc_now) -> "DashboardSession":
        return cls(user_id, integration, create_external_client(integration), tz, clock)

    @property
    def table(self) -> str:
        return self.integration.selected_table or ""

    @property
    def client(self) -> Client:
        return self._client

    @property
    def snapshot(self) -> Optional[DashboardSnapshot]:
        with self._lock:
            return self._snapshot

    @property
    def selection(self) -> PeriodSelection:
        with self._lock:
            return self._selection

    def _fetch_records(self, date_range: Optional[DateRange]) -> Any:
        rows = fetch_lead_rows(self._client, self.table, date_range)
        return normalize_lead_rows(rows)

    def _compute(self, selection: PeriodSelection, now: datetime, sequence: int) -> DashboardSnapshot:
        date_range = get_date_range(selection.period, now, self.tz, selection.custom)
        previous_range = get_previous_date_range(selection.period, now, self.tz, selection.custom)

        current = self._fetch_records(date_range)

        previous_records: tuple = ()
        previous_skipped = 0
        if previous_range is not None:
            try:
                previous = self._fetch_records(previous_range)
            except ConnectivityError as e:
                # The comparison period is optional; show the current period alone.
                logger.warning(
                    "Comparison period unavailable",
                    extra={"user_id": self.user_id, "table": self.table, "error": e.message},
                )
            else:
                previous_records = previous.records
                previous_skipped = previous.skipped

        period_days = period_length_days(date_range)
        report = aggregate(current.records, previous_records, period_days, self.tz)

        return DashboardSnapshot(
            report=report,
            selection=selection,
            date_range=date_range,
            previous_range=previous_range,
            period_days=period_days,
            skipped_rows=current.skipped + previous_skipped,
            sequence=sequence,
            refreshed_at=now,
        )

    def is_current(self, selection: PeriodSelection) -> bool:
        """True when the displayed snapshot covers `selection` as of now."""

        snapshot = self.snapshot
        if snapshot is None or snapshot.selection != selection:
            return False
        date_range = get_date_range(selection.period, self._clock(), self.tz, selection.custom)
        return date_range == snapshot.date_range

    def refresh(self, selection: Optional[PeriodSelection] = None) -> DashboardSnapshot:
        """
        Run one refresh cycle.

        Args:
            selection: period to show; None keeps the last selected period

        Returns:
            The snapshot now displayed. If a newer refresh started while this
            one was fetching, that is the currently displayed snapshot rather
            than the one computed here.

        Raises:
            ConnectivityError: if the current period cannot be read
        """

        # Selection and sequence number are taken together so the latest
        # refresh is always the one for the latest selection.
        with self._lock:
            if selection is not None:
                self._selection = selection
            selection = self._selection
            sequence = self._sequencer.issue()

        snapshot = self._compute(selection, self._clock(), sequence)

        with self._lock:
            if self._sequencer.is_latest(sequence):
                self._snapshot = snapshot
                logger.info(
                    "Dashboard refreshed",
                    extra={
                        "user_id": self.user_id,
                        "sequence": sequence,
                        "period": selection.period.value,
                        "conversations": snapshot.report.conversations,
                        "skipped_rows": snapshot.skipped_rows,
                    },
                )
                return snapshot

            logger.debug(
                "Discarding stale dashboard refresh",
                extra={"user_id": self.user_id, "sequence": sequence},
            )
            return self._snapshot or snapshot

    def handle_change(self, payload: Any = None) -> None:
        """Realtime callback: refresh with the current selection."""

        try:
            self.refresh()
        except ConnectivityError as e:
            logger.warning(
                "Realtime-triggered refresh failed",
                extra={"user_id": self.user_id, "error": e.message},
            )

    async def start_realtime(self) -> bool:
        if self._realtime is None:
            self._realtime = RealtimeSubscription(
                self.integration.project_url,
                self.integration.anon_key,
                self.table,
                self.handle_change,
            )
        return await self._realtime.subscribe()

    async def stop_realtime(self) -> None:
        if self._realtime is not None:
            await self._realtime.unsubscribe()
            self._realtime = None

    @property
    def realtime_active(self) -> bool:
        return self._realtime is not None and self._realtime.active


SessionFactory = Callable[[], DashboardSession]


@dataclass
class SessionRegistry:
    """Live dashboard sessions by user id."""

    _sessions: Dict[str, DashboardSession] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def get(self, user_id: str) -> Optional[DashboardSession]:
        with self._lock:
            return self._sessions.get(user_id)

    def get_or_create(self, user_id: str, factory: SessionFactory) -> DashboardSession:
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                session = factory()
                self._sessions[user_id] = session
            return session

    def pop(self, user_id: str) -> Optional[DashboardSession]:
        with self._lock:
            return self._sessions.pop(user_id, None)

    async def discard(self, user_id: str) -> None:
        """Drop a session and close its realtime channel."""

        session = self.pop(user_id)
        if session is not None:
            await session.stop_realtime()

    def user_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)


__all__ = [
    "DashboardSession",
    "DashboardSnapshot",
    "PeriodSelection",
    "RefreshSequencer",
    "SessionRegistry",
    "utc_now",
]
