"""Alarm players: a webhook-driven tone player and a silent stand-in"""

import asyncio
import logging
import time
from typing import Callable, Optional, Protocol, Set

import httpx

from leisure_ledger.config import settings


class AlarmPlayer(Protocol):
    """Fire-and-forget alarm; failures never reach the caller"""

    started_at: Optional[float]

    def play_alarm(self) -> None: ...

    def stop_alarm(self) -> None: ...

    def is_playing(self) -> bool: ...

    async def drain(self) -> None: ...


class SilentAlarmPlayer:
    """Tracks alarm state without producing sound (no device configured)"""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self.started_at: Optional[float] = None

    def play_alarm(self) -> None:
        self.started_at = self.clock()

    def stop_alarm(self) -> None:
        self.started_at = None

    def is_playing(self) -> bool:
        return self.started_at is not None

    async def drain(self) -> None:
        return None


class WebhookAlarmPlayer(SilentAlarmPlayer):
    """
    Ask a sound device to start or stop the alarm over HTTP.

    Inside the event loop each notification runs as its own task, so the
    ticker and request handlers never wait on the speaker. One attempt per
    event with a short timeout; errors are logged and swallowed so a missing
    speaker never blocks settlement.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(clock)
        self.webhook_url = webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport
        self._pending: Set[asyncio.Task] = set()

    def play_alarm(self) -> None:
        super().play_alarm()
        self._notify("ALARM_STARTED")

    def stop_alarm(self) -> None:
        was_playing = self.is_playing()
        super().stop_alarm()
        if was_playing:
            self._notify("ALARM_STOPPED")

    async def drain(self) -> None:
        """Wait for notifications still in flight (used at shutdown)"""
        if self._pending:
            await asyncio.gather(*self._pending)

    def _notify(self, event: str) -> None:
        payload = {"event": event, "at": self.clock()}
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # synchronous caller (CLI, scripts): no loop to block
            asyncio.run(self._send(payload))
            return

        task = loop.create_task(self._send(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, payload: dict) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logging.warning(f"Alarm webhook failed: {e}", extra={"step": "alarm", "event": payload["event"]})


def build_alarm_player(clock: Callable[[], float] = time.time) -> AlarmPlayer:
    """Webhook player when a URL is configured, silent otherwise"""
    if settings.alarm_webhook_url:
        return WebhookAlarmPlayer(settings.alarm_webhook_url, clock=clock)
    return SilentAlarmPlayer(clock)
