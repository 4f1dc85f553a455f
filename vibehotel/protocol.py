"""Wire codec for the room protocol.

Every frame is one JSON object tagged by its `type` field. The vocabulary is
closed: see `vibehotel.api.models` for the inbound (`ClientMsg`) and outbound
(`ServerMsg`) variants.
"""

from __future__ import annotations

import logging

from pydantic import TypeAdapter, ValidationError

from vibehotel.api.models import ClientMsg, ServerMsg

logger = logging.getLogger(__name__)

_client_msg_adapter: TypeAdapter[ClientMsg] = TypeAdapter(ClientMsg)


def decode_client_message(raw: str | bytes, *, max_bytes: int | None = None) -> ClientMsg | None:
    """Parse one inbound frame.

    Returns None for anything that is not a well-formed command: invalid JSON,
    a missing or unknown `type`, wrong field types, or a frame over `max_bytes`.
    """

    size = len(raw.encode("utf-8")) if isinstance(raw, str) else len(raw)
    if max_bytes is not None and size > max_bytes:
        logger.info("dropping oversized frame (%d bytes > %d)", size, max_bytes)
        return None

    try:
        return _client_msg_adapter.validate_json(raw)
    except ValidationError as e:
        logger.info("dropping malformed frame: %s", e.errors(include_url=False, include_input=False)[:1])
        return None


def encode_server_message(msg: ServerMsg) -> str:
    return msg.model_dump_json(by_alias=True)
