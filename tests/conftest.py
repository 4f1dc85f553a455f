from __future__ import annotations

import os
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent


@pytest.fixture(scope="session", autouse=True)
def _use_catalog_from_test_fixtures() -> None:
    """Point catalog loading at `tests/assets` and forbid the built-in fallback.

    This keeps tests hermetic and prevents coupling to the repo's real shop data.
    App startup in the `client` fixture reads the same variables.
    """

    os.environ["VIBEHOTEL_STRICT_CATALOG"] = "1"
    # tests/ contains an assets/ dir, so it works as a fake project root.
    os.environ["VIBEHOTEL_CATALOG_ROOT"] = str(TESTS_DIR)


@pytest.fixture()
def catalog():
    from vibehotel.catalog.registry import load_catalog

    return load_catalog(root=TESTS_DIR)


@pytest.fixture()
def store(catalog):
    from vibehotel.room_store import RoomStore

    return RoomStore(catalog=catalog)


@pytest.fixture()
def processor(store):
    from vibehotel.commands import CommandProcessor

    return CommandProcessor(store, max_message_bytes=4096)


@pytest.fixture()
def client():
    """FastAPI TestClient with app startup run, so `app.state.room` is fresh per test.

    The context manager also keeps one event loop for every websocket opened
    through this client, which the per-session writer tasks rely on.
    """

    from fastapi.testclient import TestClient

    from vibehotel.main import app

    with TestClient(app) as c:
        yield c
