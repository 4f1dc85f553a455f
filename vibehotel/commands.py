from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from vibehotel.api.models import (
    WHITE,
    BuyItemMsg,
    ChatBroadcastMsg,
    ChatMsg,
    ClientMsg,
    FurniMovedMsg,
    FurniPickedUpMsg,
    FurniPlacedMsg,
    JoinMsg,
    MoveFurniMsg,
    MoveMsg,
    PickupFurniMsg,
    PlaceItemMsg,
    ServerMsg,
    SyncInventoryMsg,
    UpdateCreditsMsg,
    UserJoinedMsg,
    UserLeftMsg,
    UserMovedMsg,
    WelcomeMsg,
)
from vibehotel.command_processing.validators import ValidationContext, pipeline_for_command
from vibehotel.fsm import SessionFSM
from vibehotel.protocol import decode_client_message
from vibehotel.room_store import DEFAULT_NAME, CommandRejected, RoomStore

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 24
MAX_CHAT_LENGTH = 200


class Audience(StrEnum):
    sender = "sender"
    others = "others"
    everyone = "everyone"


@dataclass(frozen=True, slots=True)
class Outbound:
    """One emission: who gets it (relative to `sender_id`) and what."""

    audience: Audience
    sender_id: str
    message: ServerMsg


def _now_ms() -> int:
    return int(time.time() * 1000)


def normalize_name(raw: str) -> str:
    return raw.strip()[:MAX_NAME_LENGTH] or DEFAULT_NAME


def normalize_color(raw: int | None) -> int:
    if not raw:
        return WHITE
    return max(0, min(WHITE, raw))


def normalize_chat(raw: str) -> str:
    return raw.strip()[:MAX_CHAT_LENGTH]


# Each handler takes the message class registered for its `type`.
Handler = Callable[[str, Any], list[Outbound]]


class CommandProcessor:
    """Applies transport events and client commands to the room.

    Every method is synchronous and returns the emissions in the order they
    must be delivered. Rejected commands return an empty list; nothing is sent
    back to the offending client.
    """

    def __init__(self, store: RoomStore, *, max_message_bytes: int | None = None) -> None:
        self.store = store
        self._max_message_bytes = max_message_bytes
        self._sessions: dict[str, SessionFSM] = {}
        self._handlers: dict[str, Handler] = {
            "join": self._handle_join,
            "move": self._handle_move,
            "chat": self._handle_chat,
            "buy_item": self._handle_buy_item,
            "place_item": self._handle_place_item,
            "move_furni": self._handle_move_furni,
            "pickup_furni": self._handle_pickup_furni,
        }

    def lifecycle(self, session_id: str) -> SessionFSM | None:
        return self._sessions.get(session_id)

    # ---- transport events ----

    def connect(self, session_id: str) -> list[Outbound]:
        if session_id in self._sessions:
            raise ValueError(f"Session already connected: {session_id}")

        self._sessions[session_id] = SessionFSM(session_id)
        self.store.add_user(session_id)

        welcome = WelcomeMsg(
            id=session_id,
            users=self.store.users_snapshot(),
            credits=self.store.credits_of(session_id),
            inventory=self.store.inventory_of(session_id),
            room_objects=self.store.objects_snapshot(),
        )
        return [Outbound(Audience.sender, session_id, welcome)]

    def disconnect(self, session_id: str) -> list[Outbound]:
        fsm = self._sessions.pop(session_id, None)
        if fsm is None:
            return []
        fsm.leave()
        self.store.remove_user(session_id)
        return [Outbound(Audience.everyone, session_id, UserLeftMsg(id=session_id))]

    # ---- inbound frames ----

    def handle(self, session_id: str, raw: str | bytes) -> list[Outbound]:
        cmd = decode_client_message(raw, max_bytes=self._max_message_bytes)
        if cmd is None:
            return []
        return self.apply(session_id, cmd)

    def apply(self, session_id: str, cmd: ClientMsg) -> list[Outbound]:
        fsm = self._sessions.get(session_id)
        ctx = ValidationContext(session_id=session_id, phase=fsm.phase if fsm else None, command=cmd)
        try:
            pipeline_for_command(cmd.type).validate(ctx=ctx, store=self.store)
            return self._handlers[cmd.type](session_id, cmd)
        except CommandRejected as e:
            logger.debug("rejected %s from %s: %s", cmd.type, session_id, e)
            return []

    # ---- command handlers ----

    def _handle_join(self, session_id: str, cmd: JoinMsg) -> list[Outbound]:
        user = self.store.set_identity(session_id, name=normalize_name(cmd.name), color=normalize_color(cmd.color))
        self._sessions[session_id].join()
        logger.info("session %s joined as %r", session_id, user.name)
        return [Outbound(Audience.others, session_id, UserJoinedMsg(id=session_id, user=user.model_copy()))]

    def _handle_move(self, session_id: str, cmd: MoveMsg) -> list[Outbound]:
        user = self.store.move_user(session_id, cmd.x, cmd.y)
        return [Outbound(Audience.everyone, session_id, UserMovedMsg(id=session_id, x=user.x, y=user.y))]

    def _handle_chat(self, session_id: str, cmd: ChatMsg) -> list[Outbound]:
        text = normalize_chat(cmd.text)
        if not text:
            return []
        user = self.store.require_user(session_id)
        msg = ChatBroadcastMsg(id=session_id, name=user.name, text=text, timestamp=_now_ms())
        return [Outbound(Audience.everyone, session_id, msg)]

    def _handle_buy_item(self, session_id: str, cmd: BuyItemMsg) -> list[Outbound]:
        # The pipeline has already checked that the id exists and is affordable.
        self.store.purchase(session_id, self.store.catalog[cmd.catalog_id])
        return [
            Outbound(Audience.sender, session_id, UpdateCreditsMsg(credits=self.store.credits_of(session_id))),
            Outbound(Audience.sender, session_id, SyncInventoryMsg(items=self.store.inventory_of(session_id))),
        ]

    def _handle_place_item(self, session_id: str, cmd: PlaceItemMsg) -> list[Outbound]:
        obj = self.store.place_object(session_id, cmd.item_id, cmd.x, cmd.y)
        return [
            Outbound(Audience.sender, session_id, SyncInventoryMsg(items=self.store.inventory_of(session_id))),
            Outbound(Audience.everyone, session_id, FurniPlacedMsg(object=obj.model_copy())),
        ]

    def _handle_move_furni(self, session_id: str, cmd: MoveFurniMsg) -> list[Outbound]:
        obj = self.store.move_object(cmd.instance_id, cmd.x, cmd.y)
        msg = FurniMovedMsg(instance_id=obj.instance_id, x=obj.x, y=obj.y)
        return [Outbound(Audience.everyone, session_id, msg)]

    def _handle_pickup_furni(self, session_id: str, cmd: PickupFurniMsg) -> list[Outbound]:
        item = self.store.take_object(session_id, cmd.instance_id)
        return [
            Outbound(Audience.sender, session_id, SyncInventoryMsg(items=self.store.inventory_of(session_id))),
            Outbound(Audience.everyone, session_id, FurniPickedUpMsg(instance_id=item.id)),
        ]
