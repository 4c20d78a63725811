"""Stable public API for building tooling on top of midimap.

This module is the supported integration surface for hosts that drive a
controller: parse a mapping once, then decode incoming MIDI messages and
encode feedback against it. Avoid importing from private/internal modules
unless intentionally depending on non-stable internals.
"""

from __future__ import annotations

from dataclasses import dataclass

from midimap.core.deck import resolve_deck
from midimap.core.decoder import (
    ControlContext,
    ControlHandler,
    ControlRegistry,
    MappingDecoder,
    ScriptEvaluator,
    decode,
    default_registry,
    press,
)
from midimap.core.encoder import DEFAULT_ON, encode
from midimap.core.errors import (
    InvalidMidiMessageError,
    MalformedBindingError,
    MappingLoadError,
    MappingParseError,
    MappingSelectionError,
    MidimapError,
    OutputStateError,
)
from midimap.core.mapping_loader import LoadedMapping
from midimap.core.mapping_parser import parse_mapping, parse_mapping_file
from midimap.core.model import (
    Action,
    BindingKey,
    Control,
    ControlBinding,
    MappingDefinition,
    MappingInfo,
    MidiMessage,
    OutputBinding,
    OutputState,
    ScriptFile,
)
from midimap.core.output_state import parse_output_state, read_output_state
from midimap.core.service import MappingService

__all__ = [
    "MidimapError",
    "MappingParseError",
    "MalformedBindingError",
    "MappingLoadError",
    "MappingSelectionError",
    "OutputStateError",
    "InvalidMidiMessageError",
    "Action",
    "BindingKey",
    "Control",
    "ControlBinding",
    "MappingDefinition",
    "MappingInfo",
    "MidiMessage",
    "OutputBinding",
    "OutputState",
    "ScriptFile",
    "ControlContext",
    "ControlHandler",
    "ControlRegistry",
    "MappingDecoder",
    "ScriptEvaluator",
    "DEFAULT_ON",
    "LoadedMapping",
    "MappingSummary",
    "Client",
    "decode",
    "default_registry",
    "encode",
    "parse_mapping",
    "parse_mapping_file",
    "parse_output_state",
    "press",
    "read_output_state",
    "resolve_deck",
]


@dataclass(frozen=True)
class MappingSummary:
    """Binding counts for a loaded mapping."""

    mapping: LoadedMapping
    controls: int
    outputs: int
    scripted: bool


class Client:
    """Public client for interacting with midimap core capabilities.

    A `Client` instance wraps mapping discovery, decoding and feedback
    encoding behind a stable API intended for hosts (DJ software bridges,
    TUIs, scripts). Custom control kinds are added through ``registry``;
    scripted controls are delegated to ``evaluator`` when one is supplied.
    """

    def __init__(
        self,
        *,
        registry: ControlRegistry | None = None,
        evaluator: ScriptEvaluator | None = None,
    ) -> None:
        self._service = MappingService(registry=registry, evaluator=evaluator)

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    def list_mappings(self) -> list[LoadedMapping]:
        return self._service.list_mappings()

    def get_mapping(self, hint: str) -> LoadedMapping:
        return self._service.resolve_mapping(hint)

    def get_summary(self, hint: str) -> MappingSummary:
        mapping = self._service.resolve_mapping(hint)
        return MappingSummary(
            mapping=mapping,
            controls=len(mapping.definition.controls),
            outputs=len(mapping.definition.outputs),
            scripted=mapping.definition.script_source is not None,
        )

    def decoder(self, hint: str) -> MappingDecoder:
        return self._service.decoder(hint)

    def decode(self, hint: str, status: int, data1: int, data2: int) -> tuple[Action, ...]:
        return self._service.decode(hint, status, data1, data2)

    def encode(self, hint: str, state: OutputState) -> tuple[MidiMessage, ...]:
        return self._service.encode(hint, state)
