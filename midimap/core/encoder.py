"""Translation of application output state into MIDI feedback messages."""

from __future__ import annotations

from midimap.core.model import MappingDefinition, MidiMessage, OutputBinding, OutputState, OutputValue

DEFAULT_ON = 0x7F


def in_range(output: OutputBinding, value: OutputValue) -> bool:
    """Inclusive range check; a missing bound leaves that side open."""
    numeric = float(value)
    if output.minimum is not None and numeric < output.minimum:
        return False
    if output.maximum is not None and numeric > output.maximum:
        return False
    return True


def encode_output(output: OutputBinding, value: OutputValue, *, default_on: int = DEFAULT_ON) -> MidiMessage | None:
    if in_range(output, value):
        return MidiMessage(output.status, output.midino, output.on if output.on is not None else default_on)
    if output.off is not None:
        return MidiMessage(output.status, output.midino, output.off)
    return None


def encode(
    definition: MappingDefinition,
    output_state: OutputState,
    *,
    default_on: int = DEFAULT_ON,
) -> tuple[MidiMessage, ...]:
    messages: list[MidiMessage] = []
    for output in definition.outputs:
        value = output_state.get((output.group, output.key))
        if value is None:
            continue
        message = encode_output(output, value, default_on=default_on)
        if message is not None:
            messages.append(message)
    return tuple(messages)
