from __future__ import annotations

from pathlib import Path

import pytest

from midimap.core.errors import MalformedBindingError, MappingLoadError, MappingParseError
from midimap.core.mapping_parser import parse_int_text, parse_mapping, parse_mapping_file
from midimap.core.model import ControlBinding, MappingInfo, OutputBinding, ScriptFile

MAPPING_XML = """<?xml version="1.0" encoding="utf-8"?>
<MixxxControllerPreset schemaVersion="1">
  <info>
    <name>Test Controller</name>
    <author>Someone</author>
    <description> Two decks </description>
  </info>
  <controller id="TestController">
    <scriptfiles>
      <file filename="test.js" functionprefix="TestController"/>
      <file functionprefix="ignored"/>
    </scriptfiles>
    <controls>
      <control>
        <group>[Channel1]</group>
        <key>play</key>
        <status>0x90</status>
        <midino>32</midino>
        <options>
          <normal/>
          <normal/>
          <invert/>
        </options>
      </control>
      <control>
        <group>[Master]</group>
        <key>TestController.crossfader</key>
        <status>176</status>
        <midino>0x08</midino>
      </control>
    </controls>
    <outputs>
      <output>
        <group>[Channel1]</group>
        <key>play_indicator</key>
        <status>0x90</status>
        <midino>0x20</midino>
        <minimum>0.5</minimum>
        <on>0x7F</on>
      </output>
    </outputs>
  </controller>
</MixxxControllerPreset>
"""


def _control_doc(body: str) -> str:
    return f"<preset><controller><controls><control>{body}</control></controls></controller></preset>"


def test_parse_full_mapping() -> None:
    definition = parse_mapping(MAPPING_XML, "var TestController = {};")

    assert definition.info == MappingInfo(name="Test Controller", author="Someone", description="Two decks")
    assert definition.controller_id == "TestController"
    assert definition.script_files == (ScriptFile(filename="test.js", function_prefix="TestController"),)
    assert definition.script_source == "var TestController = {};"
    assert definition.controls == (
        ControlBinding(
            group="[Channel1]",
            key="play",
            status=0x90,
            midino=0x20,
            options=frozenset({"normal", "invert"}),
        ),
        ControlBinding(group="[Master]", key="TestController.crossfader", status=0xB0, midino=0x08),
    )
    assert definition.outputs == (
        OutputBinding(
            group="[Channel1]",
            key="play_indicator",
            status=0x90,
            midino=0x20,
            minimum=0.5,
            maximum=None,
            on=0x7F,
            off=None,
        ),
    )


def test_missing_info_and_controller_yield_empty_definition() -> None:
    definition = parse_mapping("<MixxxControllerPreset/>")
    assert definition.info == MappingInfo()
    assert definition.controls == ()
    assert definition.outputs == ()
    assert definition.script_source is None


def test_controller_without_outputs() -> None:
    definition = parse_mapping(
        _control_doc("<group>[Channel2]</group><key>play</key><status>144</status><midino>1</midino>")
    )
    assert len(definition.controls) == 1
    assert definition.controls[0].options == frozenset()
    assert definition.outputs == ()


def test_control_order_is_preserved() -> None:
    controls = "".join(
        f"<control><group>[Channel1]</group><key>k{i}</key><status>144</status><midino>{i}</midino></control>"
        for i in range(5)
    )
    definition = parse_mapping(f"<p><controller><controls>{controls}</controls></controller></p>")
    assert [c.key for c in definition.controls] == ["k0", "k1", "k2", "k3", "k4"]


@pytest.mark.parametrize(
    "body",
    [
        "<group>[Channel1]</group><key>play</key><midino>32</midino>",
        "<group>[Channel1]</group><key>play</key><status>144</status>",
        "<key>play</key><status>144</status><midino>32</midino>",
        "<group>[Channel1]</group><status>144</status><midino>32</midino>",
        "<group>[Channel1]</group><key>play</key><status></status><midino>32</midino>",
        "<group>[Channel1]</group><key>play</key><status>note</status><midino>32</midino>",
        "<group>[Channel1]</group><key>play</key><status>256</status><midino>32</midino>",
        "<group>[Channel1]</group><key>play</key><status>144</status><midino>128</midino>",
        "<group>[Channel1]</group><key>play</key><status>144</status><midino>-1</midino>",
    ],
)
def test_malformed_control_aborts_parse(body: str) -> None:
    with pytest.raises(MalformedBindingError):
        parse_mapping(_control_doc(body))


def test_malformed_output_optional_field_rejected() -> None:
    doc = (
        "<p><controller><outputs><output><group>[Channel1]</group><key>play_indicator</key>"
        "<status>144</status><midino>32</midino><minimum>low</minimum></output></outputs></controller></p>"
    )
    with pytest.raises(MalformedBindingError) as exc:
        parse_mapping(doc)
    assert "outputs[0].minimum" in str(exc.value)


def test_error_names_binding_index() -> None:
    good = "<control><group>[Channel1]</group><key>play</key><status>144</status><midino>1</midino></control>"
    bad = "<control><group>[Channel1]</group><key>play</key><midino>2</midino></control>"
    with pytest.raises(MalformedBindingError) as exc:
        parse_mapping(f"<p><controller><controls>{good}{bad}</controls></controller></p>")
    assert "controls[1]" in str(exc.value)
    assert "status" in str(exc.value)


def test_invalid_xml_rejected() -> None:
    with pytest.raises(MappingParseError):
        parse_mapping("<preset><controller>")


def test_parse_mapping_file_reads_script(tmp_path: Path) -> None:
    xml_path = tmp_path / "deck.midi.xml"
    script_path = tmp_path / "deck.js"
    xml_path.write_text(MAPPING_XML, encoding="utf-8")
    script_path.write_text("var x = 1;", encoding="utf-8")

    definition = parse_mapping_file(xml_path, script_path)
    assert definition.info.name == "Test Controller"
    assert definition.script_source == "var x = 1;"


def test_parse_mapping_file_missing(tmp_path: Path) -> None:
    with pytest.raises(MappingLoadError):
        parse_mapping_file(tmp_path / "missing.midi.xml")


def _output_doc(field: str) -> str:
    return (
        "<p><controller><outputs><output><group>[Channel1]</group><key>play_indicator</key>"
        f"<status>144</status><midino>32</midino>{field}<on>127</on><off>0</off></output></outputs></controller></p>"
    )


@pytest.mark.parametrize(
    "field",
    [
        "<minimum>nan</minimum>",
        "<maximum>NaN</maximum>",
        "<minimum>inf</minimum>",
        "<maximum>-infinity</maximum>",
        "<minimum>1e400</minimum>",
        "<minimum>1_0</minimum>",
    ],
)
def test_non_finite_output_bounds_rejected(field: str) -> None:
    with pytest.raises(MalformedBindingError):
        parse_mapping(_output_doc(field))


@pytest.mark.parametrize(
    ("field", "expected"),
    [("<minimum>-1.5</minimum>", -1.5), ("<minimum>.5</minimum>", 0.5), ("<minimum>0x10</minimum>", 16.0)],
)
def test_numeric_output_bounds_accepted(field: str, expected: float) -> None:
    (output,) = parse_mapping(_output_doc(field)).outputs
    assert output.minimum == expected


@pytest.mark.parametrize("status", ["1_44", "+144", "١٤٤", "0x9_0", "144.0", "0x"])
def test_status_must_be_plain_decimal_or_hex(status: str) -> None:
    with pytest.raises(MalformedBindingError):
        parse_mapping(
            _control_doc(f"<group>[Channel1]</group><key>play</key><status>{status}</status><midino>1</midino>")
        )


def test_parse_int_text_accepts_decimal_and_hex() -> None:
    assert parse_int_text("144") == 144
    assert parse_int_text(" 0X90 ") == 0x90
    with pytest.raises(ValueError):
        parse_int_text("1_44")
