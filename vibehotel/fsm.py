from __future__ import annotations

from enum import StrEnum

from statemachine import State, StateMachine


class SessionPhase(StrEnum):
    connected = "connected"
    joined = "joined"
    disconnected = "disconnected"


class SessionFSM(StateMachine):
    """Lifecycle of one client session.

    connected -> joined -> disconnected. `join` may be repeated to update the
    identity. Commands other than `join` don't require having joined first.
    """

    connected = State(SessionPhase.connected.value, value=SessionPhase.connected.value, initial=True)
    joined = State(SessionPhase.joined.value, value=SessionPhase.joined.value)
    disconnected = State(SessionPhase.disconnected.value, value=SessionPhase.disconnected.value, final=True)

    join = connected.to(joined) | joined.to.itself()
    leave = connected.to(disconnected) | joined.to(disconnected)

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__()

    @property
    def phase(self) -> SessionPhase:
        return SessionPhase(str(self.current_state.value))

    @property
    def is_active(self) -> bool:
        return self.phase != SessionPhase.disconnected
