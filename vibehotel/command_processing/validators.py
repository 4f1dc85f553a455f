from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from vibehotel.api.models import BuyItemMsg, ClientMsg, MoveFurniMsg, PickupFurniMsg, PlaceItemMsg
from vibehotel.fsm import SessionPhase
from vibehotel.room_store import CommandRejected, RoomStore


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    session_id: str
    phase: SessionPhase | None
    command: ClientMsg

    @property
    def action(self) -> str:
        return self.command.type


class CommandValidator(ABC):
    """A small, composable validation unit for an inbound command."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, store: RoomStore) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class PhaseValidator(CommandValidator):
    """Validates the session lifecycle phase for a given command."""

    allowed_phases: frozenset[SessionPhase]

    def validate(self, *, ctx: ValidationContext, store: RoomStore) -> None:
        if ctx.phase is None:
            raise CommandRejected("Session not found")
        if ctx.phase not in self.allowed_phases:
            allowed = ",".join(sorted(p.value for p in self.allowed_phases))
            raise CommandRejected(f"Command '{ctx.action}' not allowed in phase '{ctx.phase.value}' (allowed: {allowed})")


@dataclass(frozen=True, slots=True)
class KnownUserValidator(CommandValidator):
    def validate(self, *, ctx: ValidationContext, store: RoomStore) -> None:
        if not store.has_user(ctx.session_id):
            raise CommandRejected("User not found")


@dataclass(frozen=True, slots=True)
class AffordableCatalogEntryValidator(CommandValidator):
    """The catalog id must exist and the buyer must be able to pay for it."""

    def validate(self, *, ctx: ValidationContext, store: RoomStore) -> None:
        cmd = ctx.command
        if not isinstance(cmd, BuyItemMsg):
            return
        entry = store.catalog.get(cmd.catalog_id)
        if entry is None:
            raise CommandRejected(f"Unknown catalog id: {cmd.catalog_id}")
        if store.credits_of(ctx.session_id) < entry.cost:
            raise CommandRejected("Insufficient credits")


@dataclass(frozen=True, slots=True)
class InventoryItemValidator(CommandValidator):
    def validate(self, *, ctx: ValidationContext, store: RoomStore) -> None:
        cmd = ctx.command
        if not isinstance(cmd, PlaceItemMsg):
            return
        if not any(i.id == cmd.item_id for i in store.inventory_of(ctx.session_id)):
            raise CommandRejected(f"Item not in inventory: {cmd.item_id}")


@dataclass(frozen=True, slots=True)
class RoomObjectValidator(CommandValidator):
    def validate(self, *, ctx: ValidationContext, store: RoomStore) -> None:
        cmd = ctx.command
        if not isinstance(cmd, (MoveFurniMsg, PickupFurniMsg)):
            return
        if store.get_object(cmd.instance_id) is None:
            raise CommandRejected(f"Room object not found: {cmd.instance_id}")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[CommandValidator, ...]

    def validate(self, *, ctx: ValidationContext, store: RoomStore) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, store=store)


_LIVE = frozenset({SessionPhase.connected, SessionPhase.joined})

_BASE = (PhaseValidator(allowed_phases=_LIVE), KnownUserValidator())

DEFAULT_COMMAND_PIPELINES: dict[str, ValidatorPipeline] = {
    "join": ValidatorPipeline(validators=_BASE),
    "move": ValidatorPipeline(validators=_BASE),
    "chat": ValidatorPipeline(validators=_BASE),
    "buy_item": ValidatorPipeline(validators=(*_BASE, AffordableCatalogEntryValidator())),
    "place_item": ValidatorPipeline(validators=(*_BASE, InventoryItemValidator())),
    "move_furni": ValidatorPipeline(validators=(*_BASE, RoomObjectValidator())),
    "pickup_furni": ValidatorPipeline(validators=(*_BASE, RoomObjectValidator())),
}


def pipeline_for_command(command_type: str) -> ValidatorPipeline:
    pipe = DEFAULT_COMMAND_PIPELINES.get(command_type)
    if pipe is None:
        raise ValueError(f"Unknown command: {command_type}")
    return pipe
