from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


WHITE = 0xFFFFFF


class WireModel(BaseModel):
    """Base for everything that crosses the socket.

    Attributes are snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- shared records ----


class UserState(WireModel):
    id: str
    name: str = "Guest"
    color: int = WHITE
    x: int
    y: int


class Item(WireModel):
    id: str
    type_id: str
    name: str


class RoomObject(WireModel):
    instance_id: str
    type_id: str
    x: int
    y: int


class CatalogItem(WireModel):
    id: str
    name: str
    cost: int = Field(..., ge=0)
    color: int


class CatalogResponse(WireModel):
    items: list[CatalogItem]


# ---- client -> server ----

# NaN/Infinity are valid JSON for Python's parser; treat them as malformed coordinates.
Coordinate = Annotated[float, Field(allow_inf_nan=False)]


class JoinMsg(WireModel):
    type: Literal["join"]
    name: str = ""
    color: int | None = None


class MoveMsg(WireModel):
    type: Literal["move"]
    x: Coordinate
    y: Coordinate


class ChatMsg(WireModel):
    type: Literal["chat"]
    text: str


class BuyItemMsg(WireModel):
    type: Literal["buy_item"]
    catalog_id: str


class PlaceItemMsg(WireModel):
    type: Literal["place_item"]
    item_id: str
    x: Coordinate
    y: Coordinate


class MoveFurniMsg(WireModel):
    type: Literal["move_furni"]
    instance_id: str
    x: Coordinate
    y: Coordinate


class PickupFurniMsg(WireModel):
    type: Literal["pickup_furni"]
    instance_id: str


ClientMsg = Annotated[
    Union[JoinMsg, MoveMsg, ChatMsg, BuyItemMsg, PlaceItemMsg, MoveFurniMsg, PickupFurniMsg],
    Field(discriminator="type"),
]


# ---- server -> client ----


class WelcomeMsg(WireModel):
    type: Literal["welcome"] = "welcome"
    id: str
    users: dict[str, UserState]
    credits: int
    inventory: list[Item]
    room_objects: list[RoomObject]


class UserJoinedMsg(WireModel):
    type: Literal["user_joined"] = "user_joined"
    id: str
    user: UserState


class UserLeftMsg(WireModel):
    type: Literal["user_left"] = "user_left"
    id: str


class UserMovedMsg(WireModel):
    type: Literal["user_moved"] = "user_moved"
    id: str
    x: int
    y: int


class ChatBroadcastMsg(WireModel):
    type: Literal["chat"] = "chat"
    id: str
    name: str
    text: str
    # Epoch milliseconds.
    timestamp: int


class UpdateCreditsMsg(WireModel):
    type: Literal["update_credits"] = "update_credits"
    credits: int


class SyncInventoryMsg(WireModel):
    type: Literal["sync_inventory"] = "sync_inventory"
    items: list[Item]


class FurniPlacedMsg(WireModel):
    type: Literal["furni_placed"] = "furni_placed"
    object: RoomObject


class FurniMovedMsg(WireModel):
    type: Literal["furni_moved"] = "furni_moved"
    instance_id: str
    x: int
    y: int


class FurniPickedUpMsg(WireModel):
    type: Literal["furni_picked_up"] = "furni_picked_up"
    instance_id: str


ServerMsg = Union[
    WelcomeMsg,
    UserJoinedMsg,
    UserLeftMsg,
    UserMovedMsg,
    ChatBroadcastMsg,
    UpdateCreditsMsg,
    SyncInventoryMsg,
    FurniPlacedMsg,
    FurniMovedMsg,
    FurniPickedUpMsg,
]
