"""
Realtime change notifications for the lead table.

Subscribes to `postgres_changes` on `public:<table>` in the user's external
project and calls `on_change` for every insert, update or delete. Realtime
in supabase-py requires the async client, so subscription management is
async; the callback runs in the default executor so a slow refresh never
blocks the event loop.

Subscription failures are logged and reported through the return value. A
dashboard without realtime still works through manual refreshes.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from supabase import acreate_client  # type: ignore[import-not-found]

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Any], None]
AsyncClientFactory = Callable[[str, str], Awaitable[Any]]


def channel_name(table: str) -> str:
    return f"public:{table}"


class RealtimeSubscription:
    """
    One live subscription per dashboard session.

    Calling subscribe() again replaces the previous channel.
    """

    def __init__(
        self,
        project_url: str,
        anon_key: str,
        table: str,
        on_change: ChangeCallback,
        client_factory: AsyncClientFactory = acreate_client,
    ) -> None:
        self.project_url = project_url
        self.anon_key = anon_key
        self.table = table
        self._on_change = on_change
        self._client_factory = client_factory
        self._client: Optional[Any] = None
        self._channel: Optional[Any] = None

    @property
    def active(self) -> bool:
        return self._channel is not None

    def _dispatch(self, payload: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._on_change(payload)
            return
        future = loop.run_in_executor(None, self._on_change, payload)
        future.add_done_callback(self._log_failure)

    def _log_failure(self, future: "asyncio.Future[None]") -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(
                "Realtime change handler failed",
                extra={"table": self.table, "error": str(error)},
            )

    async def subscribe(self) -> bool:
        await self.unsubscribe()

        try:
            client = await self._client_factory(self.project_url, self.anon_key)
            channel = client.channel(channel_name(self.table))
            channel.on_postgres_changes(
                "*",
                schema="public",
                table=self.table,
                callback=self._dispatch,
            )
            await channel.subscribe()
        except Exception as e:
            logger.warning(
                "Realtime subscription failed",
                extra={"table": self.table, "error": str(e)},
            )
            return False

        self._client = client
        self._channel = channel
        logger.info("Realtime subscription active", extra={"table": self.table})
        return True

    async def unsubscribe(self) -> None:
        channel, self._channel = self._channel, None
        self._client = None
        if channel is None:
            return
        try:
            await channel.unsubscribe()
        except Exception as e:
            logger.warning(
                "Realtime unsubscribe failed",
                extra={"table": self.table, "error": str(e)},
            )


__all__ = ["RealtimeSubscription", "channel_name"]
