from __future__ import annotations

import logging
from collections.abc import Iterable

from vibehotel.commands import Audience, Outbound
from vibehotel.protocol import encode_server_message
from vibehotel.sessions import SessionRegistry

logger = logging.getLogger(__name__)


class BroadcastRouter:
    """In-process fan-out of server messages to live sessions.

    Contract:
      - `deliver(outbound)` encodes the message once and queues it on every
        session in the audience, resolved against the registry at call time.
      - queuing never awaits, so callers can deliver from synchronous code and
        per-recipient order equals call order.

    Note: this is single-process only. Running multiple server replicas would
    need an external pub/sub.
    """

    def __init__(self, registry: SessionRegistry) -> None:
        self.registry = registry

    def recipients(self, audience: Audience, sender_id: str) -> list[str]:
        if audience == Audience.sender:
            return [sender_id] if sender_id in self.registry else []
        if audience == Audience.others:
            return [sid for sid in self.registry.ids() if sid != sender_id]
        return self.registry.ids()

    def deliver(self, outbound: Outbound) -> int:
        """Queue one message; returns how many sessions accepted it."""

        targets = self.recipients(outbound.audience, outbound.sender_id)
        if not targets:
            return 0

        frame = encode_server_message(outbound.message)
        delivered = 0
        for sid in targets:
            session = self.registry.lookup(sid)
            if session is None:
                continue
            if session.enqueue(frame):
                delivered += 1
            else:
                logger.debug("skipping closed session %s for %s", sid, outbound.message.type)
        return delivered

    def deliver_all(self, outbounds: Iterable[Outbound]) -> None:
        for outbound in outbounds:
            self.deliver(outbound)
