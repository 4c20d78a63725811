"""Service layer used by the CLI and host integrations."""

from __future__ import annotations

from pathlib import Path

from midimap.core.decoder import ControlRegistry, MappingDecoder, ScriptEvaluator
from midimap.core.encoder import encode
from midimap.core.errors import MappingSelectionError
from midimap.core.mapping_loader import LoadedMapping, load_mapping_path, load_mappings
from midimap.core.model import Action, MidiMessage, OutputState


class MappingService:
    def __init__(
        self,
        *,
        registry: ControlRegistry | None = None,
        evaluator: ScriptEvaluator | None = None,
    ) -> None:
        loaded = load_mappings()
        self.mappings = loaded.mappings
        self.load_warnings = loaded.warnings
        self.registry = registry
        self.evaluator = evaluator

    def list_mappings(self) -> list[LoadedMapping]:
        return sorted(self.mappings.values(), key=lambda m: m.id)

    def resolve_mapping(self, hint: str) -> LoadedMapping:
        exact = self.mappings.get(hint)
        if exact is not None:
            return exact

        path = Path(hint)
        if path.is_file():
            return load_mapping_path(path)

        needle = hint.lower()
        candidates = [
            m
            for m in self.mappings.values()
            if needle in m.id.lower()
            or (m.definition.info.name is not None and needle in m.definition.info.name.lower())
        ]
        if not candidates:
            raise MappingSelectionError(
                f"No mapping found matching '{hint}'. Use 'midimap list' to inspect available mappings."
            )
        if len(candidates) > 1:
            candidate_desc = ", ".join(sorted(m.id for m in candidates))
            raise MappingSelectionError(
                f"Multiple mappings match '{hint}': {candidate_desc}. Use the full mapping id."
            )
        return candidates[0]

    def decoder(self, hint: str) -> MappingDecoder:
        mapping = self.resolve_mapping(hint)
        return MappingDecoder(mapping.definition, registry=self.registry, evaluator=self.evaluator)

    def decode(self, hint: str, status: int, data1: int, data2: int) -> tuple[Action, ...]:
        return self.decoder(hint).decode(MidiMessage(status, data1, data2))

    def encode(self, hint: str, state: OutputState) -> tuple[MidiMessage, ...]:
        return encode(self.resolve_mapping(hint).definition, state)
