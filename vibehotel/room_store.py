from __future__ import annotations

import math
from uuid import uuid4

from vibehotel.api.models import WHITE, Item, RoomObject, UserState
from vibehotel.catalog.registry import Catalog, CatalogEntry
from vibehotel.infra.settings import RoomSettings


DEFAULT_NAME = "Guest"
SPAWN_X = 5
SPAWN_Y = 5


class CommandRejected(ValueError):
    """A command referenced something that doesn't exist or isn't affordable.

    State is left untouched whenever this is raised.
    """


def new_object_id() -> str:
    return uuid4().hex


def _round_half_up(v: float) -> int:
    return math.floor(v + 0.5)


class RoomStore:
    """Authoritative in-memory state of the single room.

    Owns users, per-user credits and inventory, and the placed room objects.
    Not thread-safe: every mutation is expected to run to completion on the
    event loop before the next one starts.
    """

    def __init__(self, *, catalog: Catalog, settings: RoomSettings | None = None) -> None:
        self.catalog = catalog
        self.settings = settings or RoomSettings()
        self._users: dict[str, UserState] = {}
        self._credits: dict[str, int] = {}
        self._inventories: dict[str, list[Item]] = {}
        # instance_id -> object, insertion ordered (placement order)
        self._objects: dict[str, RoomObject] = {}

    @property
    def map_width(self) -> int:
        return self.settings.map_width

    @property
    def map_height(self) -> int:
        return self.settings.map_height

    def clamp_grid(self, x: float, y: float) -> tuple[int, int]:
        cx = max(0, min(self.map_width - 1, _round_half_up(x)))
        cy = max(0, min(self.map_height - 1, _round_half_up(y)))
        return cx, cy

    # ---- users ----

    def add_user(self, user_id: str) -> UserState:
        x, y = self.clamp_grid(SPAWN_X, SPAWN_Y)
        user = UserState(id=user_id, name=DEFAULT_NAME, color=WHITE, x=x, y=y)
        self._users[user_id] = user
        self._credits[user_id] = self.settings.starting_credits
        self._inventories[user_id] = []
        return user

    def remove_user(self, user_id: str) -> UserState | None:
        self._credits.pop(user_id, None)
        self._inventories.pop(user_id, None)
        return self._users.pop(user_id, None)

    def get_user(self, user_id: str) -> UserState | None:
        return self._users.get(user_id)

    def require_user(self, user_id: str) -> UserState:
        user = self._users.get(user_id)
        if user is None:
            raise CommandRejected("User not found")
        return user

    def has_user(self, user_id: str) -> bool:
        return user_id in self._users

    def set_identity(self, user_id: str, *, name: str, color: int) -> UserState:
        user = self.require_user(user_id)
        user.name = name
        user.color = color
        return user

    def move_user(self, user_id: str, x: float, y: float) -> UserState:
        user = self.require_user(user_id)
        user.x, user.y = self.clamp_grid(x, y)
        return user

    def users_snapshot(self) -> dict[str, UserState]:
        return {uid: u.model_copy() for uid, u in self._users.items()}

    # ---- economy ----

    def credits_of(self, user_id: str) -> int:
        self.require_user(user_id)
        return self._credits.get(user_id, 0)

    def debit(self, user_id: str, amount: int) -> int:
        balance = self.credits_of(user_id)
        if amount < 0:
            raise CommandRejected("Debit amount must be >= 0")
        if balance < amount:
            raise CommandRejected("Insufficient credits")
        self._credits[user_id] = balance - amount
        return self._credits[user_id]

    def inventory_of(self, user_id: str) -> list[Item]:
        self.require_user(user_id)
        return [i.model_copy() for i in self._inventories.get(user_id, [])]

    def add_inventory_item(self, user_id: str, item: Item) -> Item:
        self.require_user(user_id)
        self._inventories.setdefault(user_id, []).append(item)
        return item

    def take_inventory_item(self, user_id: str, item_id: str) -> Item:
        self.require_user(user_id)
        inv = self._inventories.get(user_id, [])
        for idx, item in enumerate(inv):
            if item.id == item_id:
                return inv.pop(idx)
        raise CommandRejected("Item not in inventory")

    def purchase(self, user_id: str, entry: CatalogEntry) -> Item:
        """Debit the entry's cost and hand the user a freshly minted item."""

        self.debit(user_id, entry.cost)
        item = Item(id=new_object_id(), type_id=entry.id, name=entry.name)
        return self.add_inventory_item(user_id, item)

    # ---- room objects ----

    def get_object(self, instance_id: str) -> RoomObject | None:
        return self._objects.get(instance_id)

    def require_object(self, instance_id: str) -> RoomObject:
        obj = self._objects.get(instance_id)
        if obj is None:
            raise CommandRejected("Room object not found")
        return obj

    def place_object(self, user_id: str, item_id: str, x: float, y: float) -> RoomObject:
        item = self.take_inventory_item(user_id, item_id)
        cx, cy = self.clamp_grid(x, y)
        # The placed object keeps the item's id: same physical object.
        obj = RoomObject(instance_id=item.id, type_id=item.type_id, x=cx, y=cy)
        self._objects[obj.instance_id] = obj
        return obj

    def move_object(self, instance_id: str, x: float, y: float) -> RoomObject:
        obj = self.require_object(instance_id)
        obj.x, obj.y = self.clamp_grid(x, y)
        return obj

    def take_object(self, user_id: str, instance_id: str) -> Item:
        """Pick a room object up into the user's inventory, keeping its id."""

        self.require_user(user_id)
        obj = self.require_object(instance_id)
        del self._objects[instance_id]
        item = Item(id=obj.instance_id, type_id=obj.type_id, name=self.catalog.name_for(obj.type_id))
        return self.add_inventory_item(user_id, item)

    def objects_snapshot(self) -> list[RoomObject]:
        return [o.model_copy() for o in self._objects.values()]

    def __len__(self) -> int:
        return len(self._users)
