from __future__ import annotations

import logging

from vibehotel.catalog.registry import Catalog
from vibehotel.commands import CommandProcessor
from vibehotel.infra.settings import RoomSettings
from vibehotel.room_store import RoomStore
from vibehotel.sessions import Session, SessionRegistry, Transport
from vibehotel.websocket_hub import BroadcastRouter

logger = logging.getLogger(__name__)


class Room:
    """The single shared room: wires transport events through the processor.

    Each method runs synchronously from start to finish, so one event's state
    change and emissions are complete before the next event is looked at.
    """

    def __init__(self, *, catalog: Catalog, settings: RoomSettings | None = None) -> None:
        self.settings = settings or RoomSettings()
        self.store = RoomStore(catalog=catalog, settings=self.settings)
        self.registry = SessionRegistry(max_outbox=self.settings.max_outbox)
        self.processor = CommandProcessor(self.store, max_message_bytes=self.settings.max_message_bytes)
        self.router = BroadcastRouter(self.registry)

    def open_session(self, transport: Transport) -> Session:
        session = self.registry.open(transport)
        self.router.deliver_all(self.processor.connect(session.session_id))
        logger.info("session %s connected (%d online)", session.session_id, len(self.registry))
        return session

    def receive(self, session_id: str, raw: str | bytes) -> None:
        try:
            self.router.deliver_all(self.processor.handle(session_id, raw))
        except Exception:
            # Contain the failure to this one frame; other sessions keep going.
            logger.exception("error while handling frame from session %s", session_id)

    def close_session(self, session_id: str) -> None:
        was_open = self.registry.close(session_id) is not None
        outbounds = self.processor.disconnect(session_id)
        if was_open or outbounds:
            logger.info("session %s disconnected (%d online)", session_id, len(self.registry))
        self.router.deliver_all(outbounds)
