from __future__ import annotations

import asyncio
import json

import pytest

from vibehotel.api.models import ChatBroadcastMsg, UserLeftMsg, UserMovedMsg
from vibehotel.commands import Audience, Outbound
from vibehotel.sessions import CLOSE_CODE_OUTBOX_FULL, SessionRegistry
from vibehotel.websocket_hub import BroadcastRouter


class FakeTransport:
    def __init__(self, *, fail: bool = False, stall: bool = False) -> None:
        self.fail = fail
        self.stall = stall
        self.frames: list[dict] = []
        self.close_codes: list[int] = []

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionError("peer went away")
        if self.stall:
            await asyncio.Event().wait()
        self.frames.append(json.loads(data))

    async def close(self, code: int = 1000) -> None:
        self.close_codes.append(code)


def _moved(sender: str, x: int) -> Outbound:
    return Outbound(Audience.everyone, sender, UserMovedMsg(id=sender, x=x, y=0))


@pytest.mark.asyncio
async def test_audiences_resolve_against_live_sessions() -> None:
    registry = SessionRegistry()
    ta, tb, tc = FakeTransport(), FakeTransport(), FakeTransport()
    a, b, c = registry.open(ta), registry.open(tb), registry.open(tc)
    router = BroadcastRouter(registry)

    assert router.deliver(Outbound(Audience.sender, a.session_id, UserLeftMsg(id="x"))) == 1
    assert router.deliver(Outbound(Audience.others, a.session_id, UserLeftMsg(id="y"))) == 2
    assert router.deliver(Outbound(Audience.everyone, a.session_id, UserLeftMsg(id="z"))) == 3

    for s in (a, b, c):
        await s.flush()

    assert [f["id"] for f in ta.frames] == ["x", "z"]
    assert [f["id"] for f in tb.frames] == ["y", "z"]
    assert [f["id"] for f in tc.frames] == ["y", "z"]


@pytest.mark.asyncio
async def test_per_recipient_order_is_preserved() -> None:
    registry = SessionRegistry()
    ta, tb = FakeTransport(), FakeTransport()
    a, b = registry.open(ta), registry.open(tb)
    router = BroadcastRouter(registry)

    router.deliver_all(_moved(a.session_id, x) for x in range(10))
    router.deliver(
        Outbound(Audience.everyone, b.session_id, ChatBroadcastMsg(id=b.session_id, name="B", text="hi", timestamp=1))
    )
    await a.flush()
    await b.flush()

    for t in (ta, tb):
        assert [f.get("x") for f in t.frames[:10]] == list(range(10))
        assert t.frames[10]["type"] == "chat"


@pytest.mark.asyncio
async def test_failed_recipient_does_not_affect_others() -> None:
    registry = SessionRegistry()
    good, bad = FakeTransport(), FakeTransport(fail=True)
    g, b = registry.open(good), registry.open(bad)
    router = BroadcastRouter(registry)

    router.deliver(_moved(g.session_id, 1))
    await b.flush()
    assert b.closed

    # The broken session is skipped from now on; the healthy one keeps receiving.
    assert router.deliver(_moved(g.session_id, 2)) == 1
    await g.flush()
    assert [f["x"] for f in good.frames] == [1, 2]


@pytest.mark.asyncio
async def test_sender_audience_for_closed_session_is_empty() -> None:
    registry = SessionRegistry()
    a = registry.open(FakeTransport())
    router = BroadcastRouter(registry)

    registry.close(a.session_id)
    assert router.deliver(Outbound(Audience.sender, a.session_id, UserLeftMsg(id="x"))) == 0


@pytest.mark.asyncio
async def test_recipient_that_stops_reading_is_closed_when_its_outbox_fills() -> None:
    registry = SessionRegistry(max_outbox=2)
    fast, slow = FakeTransport(), FakeTransport(stall=True)
    f, s = registry.open(fast), registry.open(slow)
    router = BroadcastRouter(registry)

    # The slow writer takes frame 1 and never finishes it; frames 2 and 3 fill its outbox.
    for x in (1, 2, 3):
        assert router.deliver(_moved(f.session_id, x)) == 2
        await f.flush()

    assert router.deliver(_moved(f.session_id, 4)) == 1
    await f.flush()
    await asyncio.sleep(0)

    assert s.closed
    assert slow.close_codes == [CLOSE_CODE_OUTBOX_FULL]
    assert [fr["x"] for fr in fast.frames] == [1, 2, 3, 4]
    assert router.deliver(_moved(f.session_id, 5)) == 1
