from __future__ import annotations

import logging

import uvicorn

from vibehotel.infra.settings import get_host, get_log_level, get_port, load_dotenv_if_present

logger = logging.getLogger(__name__)


def main() -> None:
    # Load .env early so PORT / VIBEHOTEL_* exist before anything reads them.
    load_dotenv_if_present()

    # Import after dotenv load (the app configures logging from the environment at import).
    from vibehotel.main import app

    host = get_host()
    port = get_port()
    logger.info("VibeHotel server listening on http://%s:%d (ws)", host, port)
    uvicorn.run(app, host=host, port=port, log_level=get_log_level().lower())


if __name__ == "__main__":
    main()
