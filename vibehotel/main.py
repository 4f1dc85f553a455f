from fastapi import FastAPI
import logging

from vibehotel.api.routes import router
from vibehotel.catalog.startup import init_catalog_for_app
from vibehotel.infra.settings import get_log_level, get_room_settings
from vibehotel.room import Room

__version__ = "0.1.0"

app = FastAPI(title="vibehotel", version=__version__)
app.include_router(router)
# Configure logging
logging.basicConfig(level=get_log_level())
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    catalog = init_catalog_for_app()
    settings = get_room_settings()
    app.state.room = Room(catalog=catalog, settings=settings)
    logger.info(
        "room ready: %dx%d map, %d catalog items, %d starting credits",
        settings.map_width,
        settings.map_height,
        len(catalog),
        settings.starting_credits,
    )


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "vibehotel", "version": __version__}
