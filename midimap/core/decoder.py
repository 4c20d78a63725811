"""Translation of incoming MIDI messages into semantic actions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from midimap.core.deck import resolve_deck
from midimap.core.model import Action, Control, ControlBinding, MappingDefinition, MidiMessage

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControlContext:
    """Everything a handler (built-in or scripted) knows about one message."""

    binding: ControlBinding
    message: MidiMessage
    deck: int | None
    down: bool

    @property
    def group(self) -> str:
        return self.binding.group

    @property
    def key(self) -> str:
        return self.binding.key


ControlHandler = Callable[[ControlContext], Sequence[Action]]


class ScriptEvaluator(Protocol):
    def evaluate(self, context: ControlContext, script_source: str) -> Sequence[Action]:
        """Produce actions for a control the declarative table does not handle."""


def press(kind: str) -> ControlHandler:
    """Handler factory emitting one ``press`` action for the given control kind."""

    def _handler(context: ControlContext) -> Sequence[Action]:
        return (Action(tag="press", control=Control(kind=kind), deck=context.deck, down=context.down),)

    return _handler


class ControlRegistry:
    """Maps binding keys to handlers. Copy before extending a shared registry."""

    def __init__(self, handlers: dict[str, ControlHandler] | None = None) -> None:
        self._handlers: dict[str, ControlHandler] = dict(handlers or {})

    def register(self, key: str, handler: ControlHandler) -> None:
        self._handlers[key] = handler

    def get(self, key: str) -> ControlHandler | None:
        return self._handlers.get(key)

    def keys(self) -> tuple[str, ...]:
        return tuple(sorted(self._handlers))

    def copy(self) -> ControlRegistry:
        return ControlRegistry(self._handlers)

    def __contains__(self, key: object) -> bool:
        return key in self._handlers


def default_registry() -> ControlRegistry:
    return ControlRegistry(
        {
            "play": press("play"),
            "cue_default": press("cue"),
            "sync_enabled": press("sync"),
        }
    )


def find_control(definition: MappingDefinition, message: MidiMessage) -> ControlBinding | None:
    """Return the first control bound to the message's status/note pair.

    Later bindings sharing the same pair are shadowed.
    """
    for control in definition.controls:
        if control.status == message.status and control.midino == message.data1:
            return control
    return None


def decode(
    definition: MappingDefinition,
    message: MidiMessage,
    *,
    registry: ControlRegistry | None = None,
    evaluator: ScriptEvaluator | None = None,
) -> tuple[Action, ...]:
    control = find_control(definition, message)
    if control is None:
        LOGGER.debug("No control bound to %s", message)
        return ()

    context = ControlContext(
        binding=control,
        message=message,
        deck=resolve_deck(control.group),
        down=message.data2 > 0,
    )

    handler = (registry or _DEFAULT_REGISTRY).get(control.key)
    if handler is not None:
        return tuple(handler(context))

    if definition.script_source is None or evaluator is None:
        return ()
    return tuple(evaluator.evaluate(context, definition.script_source))


class MappingDecoder:
    """Decoder bound to one mapping for the lifetime of a controller session."""

    def __init__(
        self,
        definition: MappingDefinition,
        *,
        registry: ControlRegistry | None = None,
        evaluator: ScriptEvaluator | None = None,
    ) -> None:
        self.definition = definition
        self.registry = registry or default_registry()
        self.evaluator = evaluator

    def decode(self, message: MidiMessage) -> tuple[Action, ...]:
        return decode(self.definition, message, registry=self.registry, evaluator=self.evaluator)

    def decode_bytes(self, data: bytes | Sequence[int]) -> tuple[Action, ...]:
        return self.decode(MidiMessage.from_bytes(data))


_DEFAULT_REGISTRY = default_registry()
