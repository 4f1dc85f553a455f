from __future__ import annotations

import asyncio
import logging
from typing import Protocol
from uuid import uuid4

logger = logging.getLogger(__name__)

# Policy violation: the client stopped reading its frames.
CLOSE_CODE_OUTBOX_FULL = 1008


class Transport(Protocol):
    """What a session needs from its connection (a Starlette WebSocket fits)."""

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class Session:
    """One live client connection.

    Outbound frames are queued and written by a dedicated task, so enqueueing
    never blocks and frames reach the client in the order they were queued.
    A client that lets `max_outbox` frames pile up is disconnected.
    """

    def __init__(self, session_id: str, transport: Transport, *, max_outbox: int = 0) -> None:
        self.session_id = session_id
        self.transport = transport
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=max_outbox)
        self._writer: asyncio.Task[None] | None = None
        self._closer: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        if self._writer is None and not self._closed:
            self._writer = asyncio.get_running_loop().create_task(
                self._drain(), name=f"session-writer-{self.session_id}"
            )

    def enqueue(self, frame: str) -> bool:
        if self._closed:
            return False
        try:
            self._outbox.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning(
                "session %s has %d unsent frames; closing it", self.session_id, self._outbox.qsize()
            )
            self.close()
            self._closer = asyncio.get_running_loop().create_task(
                self._close_transport(CLOSE_CODE_OUTBOX_FULL), name=f"session-closer-{self.session_id}"
            )
            return False
        return True

    async def _drain(self) -> None:
        while True:
            frame = await self._outbox.get()
            try:
                await self.transport.send_text(frame)
            except Exception:
                # Best-effort delivery: the connection is gone or broken, and
                # the route's receive loop will notice and close the session.
                logger.info("send to session %s failed; dropping its outbox", self.session_id, exc_info=True)
                self._closed = True
                return
            self._outbox.task_done()

    async def _close_transport(self, code: int) -> None:
        # Closing the socket ends the route's receive loop, which unregisters us.
        try:
            await self.transport.close(code=code)
        except Exception:
            logger.info("closing session %s failed", self.session_id, exc_info=True)

    async def flush(self) -> None:
        """Wait until every queued frame has been written, or the writer has stopped."""

        if self._writer is None or self._writer.done():
            return
        drained = asyncio.ensure_future(self._outbox.join())
        try:
            await asyncio.wait({drained, self._writer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            drained.cancel()

    def close(self) -> None:
        self._closed = True
        if self._writer is not None and not self._writer.done():
            self._writer.cancel()


class SessionRegistry:
    """Maps opaque session ids to live sessions.

    Ids are uuid4 hex strings: unique among live sessions, unguessable enough
    for routing, but not a security boundary.
    """

    def __init__(self, *, max_outbox: int = 0) -> None:
        self._sessions: dict[str, Session] = {}
        self._max_outbox = max_outbox

    def _new_session_id(self) -> str:
        while True:
            sid = uuid4().hex
            if sid not in self._sessions:
                return sid

    def open(self, transport: Transport) -> Session:
        session = Session(self._new_session_id(), transport, max_outbox=self._max_outbox)
        self._sessions[session.session_id] = session
        session.start()
        return session

    def close(self, session_id: str) -> Session | None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return None
        session.close()
        return session

    def lookup(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def ids(self) -> list[str]:
        return list(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
