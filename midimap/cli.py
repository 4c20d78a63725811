"""Typer CLI entrypoint."""

from __future__ import annotations

from pathlib import Path

import typer

from midimap.core.errors import InvalidMidiMessageError, MidimapError
from midimap.core.mapping_parser import parse_int_text
from midimap.core.model import MidiMessage
from midimap.core.output_state import read_output_state
from midimap.core.service import MappingService

app = typer.Typer(help="Translate MIDI controller messages through declarative XML mappings")


def _build_service() -> MappingService:
    service = MappingService()
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


def _parse_byte(value: str, *, name: str) -> int:
    try:
        return parse_int_text(value)
    except ValueError:
        raise InvalidMidiMessageError(f"{name} must be decimal or 0x-prefixed hex, got '{value}'") from None


@app.command("list")
def list_mappings() -> None:
    """List available mappings."""
    try:
        service = _build_service()
        mappings = service.list_mappings()
        if not mappings:
            typer.echo("No mappings loaded")
            raise typer.Exit(code=1)

        for mapping in mappings:
            name = mapping.definition.info.name or "<unnamed>"
            typer.echo(f"{mapping.id}: {name}")
    except MidimapError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("info")
def show_info(mapping: str = typer.Argument(..., help="Mapping id, name fragment or XML path")) -> None:
    """Show metadata and bindings of a mapping."""
    try:
        service = _build_service()
        loaded = service.resolve_mapping(mapping)
        definition = loaded.definition
        typer.echo(f"{loaded.id}: {definition.info.name or '<unnamed>'}")
        if definition.info.author:
            typer.echo(f"Author: {definition.info.author}")
        if definition.info.description:
            typer.echo(f"Description: {definition.info.description}")
        typer.echo(f"Controls ({len(definition.controls)}):")
        for control in definition.controls:
            options = ", ".join(sorted(control.options))
            typer.echo(
                f"  {control.status:#04x} {control.midino:#04x} {control.group} {control.key}"
                + (f" [{options}]" if options else "")
            )
        typer.echo(f"Outputs ({len(definition.outputs)}):")
        for output in definition.outputs:
            typer.echo(f"  {output.status:#04x} {output.midino:#04x} {output.group} {output.key}")
        if definition.script_source is not None:
            typer.echo("Script: attached")
    except MidimapError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("decode")
def decode_message(
    mapping: str,
    status: str,
    data1: str,
    data2: str,
) -> None:
    """Decode one MIDI message (decimal or 0x hex bytes) into actions."""
    try:
        service = _build_service()
        message = MidiMessage(
            _parse_byte(status, name="status"),
            _parse_byte(data1, name="data1"),
            _parse_byte(data2, name="data2"),
        )
        typer.echo(f"{message.hex()} {message.kind} channel={message.channel + 1}")
        actions = service.decode(mapping, message.status, message.data1, message.data2)
        if not actions:
            typer.echo("No actions")
            return
        for action in actions:
            deck = action.deck if action.deck is not None else "-"
            state = "down" if action.down else "up"
            typer.echo(f"{action.tag} {action.control.kind} deck={deck} {state}")
    except MidimapError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("encode")
def encode_state(
    mapping: str,
    state_file: Path = typer.Argument(..., help="YAML file of {group: {key: value}}"),
) -> None:
    """Encode application output state into MIDI feedback messages."""
    try:
        service = _build_service()
        messages = service.encode(mapping, read_output_state(state_file))
        if not messages:
            typer.echo("No messages")
            return
        for message in messages:
            typer.echo(message.hex())
    except MidimapError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
