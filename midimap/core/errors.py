"""Domain-specific errors for midimap."""


class MidimapError(Exception):
    """Base error for midimap."""


class MappingParseError(MidimapError):
    """Raised when a mapping document is not well-formed."""


class MalformedBindingError(MappingParseError):
    """Raised when a control/output binding is missing a field or has an invalid value."""


class MappingLoadError(MidimapError):
    """Raised when reading mapping or script sources fails."""


class MappingSelectionError(MidimapError):
    """Raised when a mapping hint cannot be resolved to a single mapping."""


class OutputStateError(MidimapError):
    """Raised when an output state document does not conform to schema."""


class InvalidMidiMessageError(MidimapError):
    """Raised when a MIDI message is built from out-of-range bytes."""
