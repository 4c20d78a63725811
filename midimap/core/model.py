"""Core data models shared by the parser, decoder, encoder, and CLI."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from midimap.core.errors import InvalidMidiMessageError

_MESSAGE_KINDS = {
    0x80: "note_off",
    0x90: "note_on",
    0xA0: "poly_aftertouch",
    0xB0: "control_change",
    0xC0: "program_change",
    0xD0: "channel_aftertouch",
    0xE0: "pitch_bend",
}


@dataclass(frozen=True)
class MappingInfo:
    name: str | None = None
    author: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class BindingKey:
    group: str
    key: str
    status: int
    midino: int


@dataclass(frozen=True)
class ControlBinding(BindingKey):
    options: frozenset[str] = frozenset()


@dataclass(frozen=True)
class OutputBinding(BindingKey):
    minimum: float | None = None
    maximum: float | None = None
    on: int | None = None
    off: int | None = None


@dataclass(frozen=True)
class ScriptFile:
    filename: str
    function_prefix: str | None = None


@dataclass(frozen=True)
class MappingDefinition:
    info: MappingInfo = field(default_factory=MappingInfo)
    controls: tuple[ControlBinding, ...] = ()
    outputs: tuple[OutputBinding, ...] = ()
    script_source: str | None = None
    controller_id: str | None = None
    script_files: tuple[ScriptFile, ...] = ()


@dataclass(frozen=True)
class MidiMessage:
    """A raw 3-byte MIDI channel message.

    Bytes are validated on construction so decode/encode never see
    out-of-range values.
    """

    status: int
    data1: int
    data2: int

    def __post_init__(self) -> None:
        for name in ("status", "data1", "data2"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidMidiMessageError(f"{name} must be an integer byte, got {value!r}")
        if not 0 <= self.status <= 0xFF:
            raise InvalidMidiMessageError(f"status must be within 0-255, got {self.status}")
        for name in ("data1", "data2"):
            value = getattr(self, name)
            if not 0 <= value <= 0x7F:
                raise InvalidMidiMessageError(f"{name} must be within 0-127, got {value}")

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | list[int] | tuple[int, ...]) -> MidiMessage:
        if len(data) != 3:
            raise InvalidMidiMessageError(f"MIDI message must be exactly 3 bytes, got {len(data)}")
        return cls(status=data[0], data1=data[1], data2=data[2])

    def to_bytes(self) -> bytes:
        return bytes((self.status, self.data1, self.data2))

    def hex(self) -> str:
        return self.to_bytes().hex()

    @property
    def channel(self) -> int:
        """Zero-based MIDI channel encoded in the low nibble of the status byte."""
        return self.status & 0x0F

    @property
    def kind(self) -> str:
        return _MESSAGE_KINDS.get(self.status & 0xF0, "system")


@dataclass(frozen=True)
class Control:
    kind: str


@dataclass(frozen=True)
class Action:
    tag: str
    control: Control
    deck: int | None
    down: bool


OutputValue = float | int | bool
OutputState = Mapping[tuple[str, str], OutputValue]
