"""SessionEventBridge: a live event stream polled from durable session state.

The bridge is not an event log.  Each poll emits one ``status_change`` event
carrying the current status, so a status that changes and reverts between
polls is never seen.  Artifacts created between polls arrive together as a
batch.  Treat the stream as eventually consistent snapshots.

Usage::

    bridge = SessionEventBridge(SessionStore(cloud), session_id)
    unsubscribe = bridge.subscribe(print)
    await bridge.connect()
    ...
    await bridge.disconnect()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field

from agentbox.utils import clock

if TYPE_CHECKING:
    from agentbox.session.store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0

EventType = Literal["status_change", "artifact_created"]
EventCallback = Callable[["AgentEvent"], None]


class AgentEvent(BaseModel):
    id: str
    type: EventType
    timestamp: int
    payload: dict[str, Any] = Field(default_factory=dict)


class SessionEventBridge:
    """Polls a session and fans events out to subscribers."""

    def __init__(
        self,
        sessions: SessionStore,
        session_id: str,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.sessions = sessions
        self.session_id = session_id
        self.interval = interval
        self.watermark = 0
        self._listeners: list[EventCallback] = []
        self._task: asyncio.Task[None] | None = None

    @property
    def connected(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        """Register *callback*; returns a function that removes it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(callback)

        return unsubscribe

    async def connect(self) -> None:
        """Start polling in the background (no-op when already connected)."""
        if self.connected:
            return
        logger.info("Connecting to session %s", self.session_id)
        self._task = asyncio.create_task(self._poll_forever())

    async def disconnect(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Disconnected from session %s", self.session_id)

    async def poll_once(self) -> list[AgentEvent]:
        """Read the session once, emit and return the resulting events.

        Only artifacts newer than the watermark produce events; the
        watermark then advances to the newest artifact seen.
        """
        state = await self.sessions.get_session_state(self.session_id)
        if state is None:
            logger.debug("Session %s not found", self.session_id)
            return []

        now = clock.now_ms()
        events = [
            AgentEvent(
                id=f"status-{now}",
                type="status_change",
                timestamp=now,
                payload={"status": state.session.status.value},
            )
        ]

        fresh = sorted(
            (a for a in state.artifacts if a.created_at > self.watermark),
            key=lambda a: a.created_at,
        )
        for artifact in fresh:
            events.append(
                AgentEvent(
                    id=artifact.id,
                    type="artifact_created",
                    timestamp=artifact.created_at,
                    payload=artifact.model_dump(mode="json"),
                )
            )
        if fresh:
            self.watermark = fresh[-1].created_at

        for event in events:
            self._emit(event)
        return events

    async def events(self) -> AsyncIterator[AgentEvent]:
        """Iterate over events as they are polled.

        Iteration does not start polling by itself; call :meth:`connect`.
        """
        queue: asyncio.Queue[AgentEvent] = asyncio.Queue()
        unsubscribe = self.subscribe(queue.put_nowait)
        try:
            while True:
                yield await queue.get()
        finally:
            unsubscribe()

    def _emit(self, event: AgentEvent) -> None:
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception:
                logger.exception("Event listener failed on %s", event.type)

    async def _poll_forever(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception:
                logger.exception("Polling session %s failed", self.session_id)
            await asyncio.sleep(self.interval)
