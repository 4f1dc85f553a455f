from __future__ import annotations

from fastapi import Depends
from fastapi.requests import HTTPConnection

from vibehotel.catalog.registry import Catalog
from vibehotel.room import Room


def get_room(conn: HTTPConnection) -> Room:
    room = getattr(conn.app.state, "room", None)
    if room is None:
        raise RuntimeError("Room not initialized. Is the app started?")
    return room


def get_room_catalog(room: Room = Depends(get_room)) -> Catalog:
    return room.store.catalog
