"""Reading application output state from YAML documents."""

from __future__ import annotations

import json
import math
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from midimap.core.errors import OutputStateError
from midimap.core.model import OutputValue


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

# Booleans are normalized after validation so yes/no/on/off stay plain strings.
for first_char, resolvers in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in resolvers
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if not isinstance(key, str):
            raise OutputStateError(f"Keys must be strings, got {key!r} (quote bracketed groups)")
        if key in mapping:
            raise OutputStateError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


def _load_schema_validator() -> Any:
    schema_text = resources.files("midimap.schemas").joinpath("output_state.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _normalize_value(value: Any, *, context: str) -> OutputValue:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise OutputStateError(f"{context} must be a finite number, got {value!r}")
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    raise OutputStateError(f"{context} must be a number or boolean true/false")


def parse_output_state(text: str, *, source: str = "<string>") -> dict[tuple[str, str], OutputValue]:
    try:
        loaded = yaml.load(text, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise OutputStateError(f"Invalid YAML in {source}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise OutputStateError(f"Output state {source} must contain a mapping at root")

    try:
        _load_schema_validator().validate(loaded)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise OutputStateError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    state: dict[tuple[str, str], OutputValue] = {}
    for group, values in loaded.items():
        for key, value in values.items():
            state[(group, key)] = _normalize_value(value, context=f"{group}.{key}")
    return state


def read_output_state(path: Path) -> dict[tuple[str, str], OutputValue]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise OutputStateError(f"Could not read output state file {path}: {exc}") from exc
    return parse_output_state(content, source=str(path))
