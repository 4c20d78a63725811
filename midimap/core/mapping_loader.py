"""Discovery and loading of packaged and user controller mappings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path

from midimap.core.errors import MappingLoadError
from midimap.core.mapping_parser import parse_mapping
from midimap.core.model import MappingDefinition

_MAPPING_SUFFIXES = (".midi.xml", ".xml")
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedMapping:
    id: str
    source: str
    definition: MappingDefinition


@dataclass(frozen=True)
class LoadedMappings:
    mappings: dict[str, LoadedMapping]
    warnings: tuple[str, ...]


def _mapping_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "midimap/mappings", xdg_data / "midimap/mappings"


def mapping_id(filename: str) -> str:
    for suffix in _MAPPING_SUFFIXES:
        if filename.endswith(suffix):
            return filename[: -len(suffix)]
    return filename


def _is_mapping_file(name: str) -> bool:
    return name.endswith(_MAPPING_SUFFIXES)


def _read_text(path: Path | Traversable) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise MappingLoadError(f"Could not read mapping file {path}: {exc}") from exc


def _read_script(directory: Path | Traversable, definition: MappingDefinition, stem: str) -> str | None:
    """Concatenate the script files a mapping references, in document order.

    Mappings that reference none fall back to a sibling ``<stem>.js``.
    """
    names = [script.filename for script in definition.script_files] or [f"{stem}.js"]
    sources: list[str] = []
    for name in names:
        candidate = directory.joinpath(name)
        if not candidate.is_file():
            if definition.script_files:
                LOGGER.warning("Script file '%s' referenced by mapping '%s' not found", name, stem)
            continue
        sources.append(_read_text(candidate))
    return "\n".join(sources) if sources else None


def load_mapping(directory: Path | Traversable, filename: str) -> LoadedMapping:
    path = directory.joinpath(filename)
    definition = parse_mapping(_read_text(path))
    script_source = _read_script(directory, definition, mapping_id(filename))
    if script_source is not None:
        definition = replace(definition, script_source=script_source)
    return LoadedMapping(id=mapping_id(filename), source=str(path), definition=definition)


def load_mapping_path(path: Path) -> LoadedMapping:
    return load_mapping(path.parent, path.name)


def _iter_packaged_mapping_names() -> list[str]:
    mapping_root = resources.files("midimap.mappings")
    return sorted(item.name for item in mapping_root.iterdir() if _is_mapping_file(item.name))


def _iter_user_mapping_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _mapping_dirs():
        if not directory.exists() or not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.is_file() and _is_mapping_file(p.name)))
    return paths


def load_mappings() -> LoadedMappings:
    mappings: dict[str, LoadedMapping] = {}
    warnings: list[str] = []

    packaged_root = resources.files("midimap.mappings")
    for name in _iter_packaged_mapping_names():
        loaded = load_mapping(packaged_root, name)
        mappings[loaded.id] = loaded

    for path in _iter_user_mapping_paths():
        loaded = load_mapping_path(path)
        if loaded.id in mappings:
            warning = f"User mapping '{loaded.id}' overrides {mappings[loaded.id].source}"
            LOGGER.warning(warning)
            warnings.append(warning)
        mappings[loaded.id] = loaded

    return LoadedMappings(mappings=mappings, warnings=tuple(warnings))
