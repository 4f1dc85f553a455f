from __future__ import annotations

from fastapi import APIRouter, Depends, WebSocket

from vibehotel.api.deps import get_room, get_room_catalog
from vibehotel.api.models import CatalogItem, CatalogResponse
from vibehotel.catalog.registry import Catalog
from vibehotel.room import Room

router = APIRouter()


@router.websocket("/")
async def room_ws(websocket: WebSocket, room: Room = Depends(get_room)) -> None:
    await websocket.accept()
    session = room.open_session(websocket)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            room.receive(session.session_id, raw)
    finally:
        room.close_session(session.session_id)


@router.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


@router.get("/catalog", response_model=CatalogResponse, response_model_by_alias=True)
async def catalog_route(catalog: Catalog = Depends(get_room_catalog)) -> CatalogResponse:
    items = [CatalogItem(id=e.id, name=e.name, cost=e.cost, color=e.color) for e in catalog.entries]
    return CatalogResponse(items=items)
