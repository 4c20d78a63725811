"""Parsing of Mixxx-style XML controller mappings."""

from __future__ import annotations

import logging
import math
import re
import xml.etree.ElementTree as ET
from pathlib import Path

from midimap.core.errors import MalformedBindingError, MappingLoadError, MappingParseError
from midimap.core.model import (
    BindingKey,
    ControlBinding,
    MappingDefinition,
    MappingInfo,
    OutputBinding,
    ScriptFile,
)
from midimap.core.xml_tree import ElementView, flatten, flatten_element

_MAX_STATUS = 0xFF
_MAX_DATA = 0x7F
_INT_RE = re.compile(r"^(0x[0-9a-f]+|[0-9]+)$")
_FLOAT_RE = re.compile(r"^[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)(e[+-]?[0-9]+)?$")
LOGGER = logging.getLogger(__name__)


def parse_int_text(text: str) -> int:
    """Parse decimal or ``0x``-prefixed hexadecimal text; raise ValueError otherwise."""
    normalized = text.strip().lower()
    if not _INT_RE.match(normalized):
        raise ValueError(f"not a decimal or 0x-prefixed hex integer: '{text}'")
    if normalized.startswith("0x"):
        return int(normalized[2:], 16)
    return int(normalized, 10)


def _parse_int(text: str, *, context: str) -> int:
    try:
        return parse_int_text(text)
    except ValueError as exc:
        raise MalformedBindingError(f"{context} must be an integer, got '{text}'") from exc


def _parse_byte(text: str, *, limit: int, context: str) -> int:
    value = _parse_int(text, context=context)
    if not 0 <= value <= limit:
        raise MalformedBindingError(f"{context} must be within 0-{limit}, got {value}")
    return value


def _parse_float(text: str, *, context: str) -> float:
    normalized = text.strip().lower()
    if _INT_RE.match(normalized):
        return float(parse_int_text(normalized))
    if not _FLOAT_RE.match(normalized):
        raise MalformedBindingError(f"{context} must be numeric, got '{text}'")
    value = float(normalized)
    if not math.isfinite(value):
        raise MalformedBindingError(f"{context} must be finite, got '{text}'")
    return value


def _required_text(fields: dict[str, ElementView], name: str, *, context: str) -> str:
    element = fields.get(name)
    if element is None or not element.text:
        raise MalformedBindingError(f"{context} is missing required field '{name}'")
    return element.text


def _optional_text(fields: dict[str, ElementView], name: str) -> str | None:
    element = fields.get(name)
    if element is None or not element.text:
        return None
    return element.text


def _parse_mapping_info(element: ElementView) -> MappingInfo:
    fields = flatten(element.children)
    return MappingInfo(
        name=_optional_text(fields, "name"),
        author=_optional_text(fields, "author"),
        description=_optional_text(fields, "description"),
    )


def _parse_binding_key(fields: dict[str, ElementView], *, context: str) -> BindingKey:
    return BindingKey(
        group=_required_text(fields, "group", context=context),
        key=_required_text(fields, "key", context=context),
        status=_parse_byte(
            _required_text(fields, "status", context=context),
            limit=_MAX_STATUS,
            context=f"{context}.status",
        ),
        midino=_parse_byte(
            _required_text(fields, "midino", context=context),
            limit=_MAX_DATA,
            context=f"{context}.midino",
        ),
    )


def _parse_control(element: ET.Element, index: int) -> ControlBinding:
    context = f"controls[{index}]"
    fields = flatten_element(element)
    base = _parse_binding_key(fields, context=context)
    options = fields.get("options")
    return ControlBinding(
        group=base.group,
        key=base.key,
        status=base.status,
        midino=base.midino,
        options=frozenset(child.tag for child in options.children) if options is not None else frozenset(),
    )


def _parse_output(element: ET.Element, index: int) -> OutputBinding:
    context = f"outputs[{index}]"
    fields = flatten_element(element)
    base = _parse_binding_key(fields, context=context)

    minimum = _optional_text(fields, "minimum")
    maximum = _optional_text(fields, "maximum")
    on = _optional_text(fields, "on")
    off = _optional_text(fields, "off")
    return OutputBinding(
        group=base.group,
        key=base.key,
        status=base.status,
        midino=base.midino,
        minimum=_parse_float(minimum, context=f"{context}.minimum") if minimum is not None else None,
        maximum=_parse_float(maximum, context=f"{context}.maximum") if maximum is not None else None,
        on=_parse_byte(on, limit=_MAX_DATA, context=f"{context}.on") if on is not None else None,
        off=_parse_byte(off, limit=_MAX_DATA, context=f"{context}.off") if off is not None else None,
    )


def _parse_script_files(element: ElementView | None) -> tuple[ScriptFile, ...]:
    if element is None:
        return ()
    files: list[ScriptFile] = []
    for child in element.children:
        filename = child.get("filename", "").strip()
        if child.tag != "file" or not filename:
            continue
        files.append(ScriptFile(filename=filename, function_prefix=child.get("functionprefix") or None))
    return tuple(files)


def parse_mapping(xml_text: str, script_text: str | None = None) -> MappingDefinition:
    """Parse a controller mapping document.

    The companion script, if any, is stored verbatim and never evaluated.
    Any malformed binding aborts the whole parse.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise MappingParseError(f"Invalid mapping XML: {exc}") from exc

    sections = flatten_element(root)
    info = sections.get("info")
    controller = sections.get("controller")

    controls: tuple[ControlBinding, ...] = ()
    outputs: tuple[OutputBinding, ...] = ()
    script_files: tuple[ScriptFile, ...] = ()
    controller_id: str | None = None
    if controller is not None:
        controller_sections = flatten(controller.children)
        controls_view = controller_sections.get("controls")
        outputs_view = controller_sections.get("outputs")
        if controls_view is not None:
            controls = tuple(_parse_control(c, i) for i, c in enumerate(controls_view.children))
        if outputs_view is not None:
            outputs = tuple(_parse_output(o, i) for i, o in enumerate(outputs_view.children))
        script_files = _parse_script_files(controller_sections.get("scriptfiles"))
        controller_id = controller.attrs.get("id") or None

    definition = MappingDefinition(
        info=_parse_mapping_info(info) if info is not None else MappingInfo(),
        controls=controls,
        outputs=outputs,
        script_source=script_text,
        controller_id=controller_id,
        script_files=script_files,
    )
    LOGGER.debug(
        "Parsed mapping %r: %d controls, %d outputs",
        definition.info.name,
        len(definition.controls),
        len(definition.outputs),
    )
    return definition


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MappingLoadError(f"Could not read mapping file {path}: {exc}") from exc


def parse_mapping_file(path: Path, script_path: Path | None = None) -> MappingDefinition:
    script_text = _read_text(script_path) if script_path is not None else None
    return parse_mapping(_read_text(path), script_text)
