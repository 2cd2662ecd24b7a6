import io

import pytest
from PIL import Image

from cogs_icondiff.dmi_parser import extract_dmi_block, open_sheet, parse_description
from cogs_icondiff.errors import DmiParseError, SheetDecodeError
from cogs_icondiff.models import StateSpec

from conftest import RED, description, make_dmi, state


HEADER = "version = 4.0\nwidth = 32\nheight = 16\n"


def test_parses_header_and_states():
    doc = parse_description(
        HEADER
        + 'state = "walk"\n\tdirs = 4\n\tframes = 3\n\tdelay = 1,2.5,0.5\n\trewind = 1\n\tloop = 2\n'
        + 'state = "idle"\n'
    )
    assert doc.version == 4.0
    assert (doc.width, doc.height) == (32, 16)
    assert doc.states == (
        StateSpec(name="walk", dirs=4, frames=3, delays=(1.0, 2.5, 0.5), rewind=True, loop=2),
        StateSpec(name="idle"),
    )

def test_blank_lines_and_indentation_are_ignored():
    doc = parse_description("\n  \nversion=4.0\n\n\twidth =32\n height= 32 \n\n state = \"a\"\n\t\tdirs = 1\n")
    assert doc.states == (StateSpec(name="a"),)

def test_empty_state_name_is_kept():
    doc = parse_description(HEADER + 'state = ""\n')
    assert doc.states[0].name == ""

def test_state_value_only_strips_one_layer_of_quotes():
    doc = parse_description(HEADER + 'state = ""x""\n')
    assert doc.states[0].name == '"x"'

def test_value_split_on_first_equals():
    doc = parse_description(HEADER + 'state = "a=b"\n')
    assert doc.states[0].name == "a=b"

def test_hotspot_is_accepted_and_discarded():
    doc = parse_description(HEADER + 'state = "a"\n\thotspot = 1,2,1\n')
    assert doc.states == (StateSpec(name="a"),)

def test_no_states_is_an_empty_document():
    assert parse_description(HEADER).states == ()

@pytest.mark.parametrize("text,key", [
    (HEADER + 'state = "a"\n\twidth = 32\n', "width"),
    (HEADER + 'state = "a"\n\tversion = 4.0\n', "version"),
    (HEADER + "dirs = 4\n", "dirs"),
    (HEADER + "delay = 1\n", "delay"),
    (HEADER + 'state = "a"\n\tmovement = 1\n', "movement"),
    (HEADER + "colour = red\n", "colour"),
])
def test_key_in_wrong_section_or_unknown_is_fatal(text, key):
    with pytest.raises(DmiParseError) as exc:
        parse_description(text)
    assert exc.value.key == key
    assert exc.value.line_no is not None

def test_error_carries_line_number_and_text():
    with pytest.raises(DmiParseError) as exc:
        parse_description(HEADER + 'state = "a"\n\tdirs = two\n')
    assert exc.value.line_no == 5
    assert "dirs = two" in exc.value.line
    assert "line 5" in str(exc.value)

@pytest.mark.parametrize("line", [
    "\tdirs = 3",
    "\tdirs = 4.0",
    "\tframes = 0",
    "\tframes = 1_0",
    "\tdelay = 1,,2",
    "\tdelay = nan",
    "\tdelay = 1,inf",
    "\tloop = -1",
    "\trewind = yes",
])
def test_malformed_values_are_fatal(line):
    with pytest.raises(DmiParseError):
        parse_description(HEADER + 'state = "a"\n' + line + "\n")

@pytest.mark.parametrize("text", [
    "version = 4.0\nwidth = 32\nstate = \"a\"\n",
    "width = 32\nheight = 32\nstate = \"a\"\n",
    "version = 4.0\nheight = 32\n",
    "version = 4.0\nwidth = 0\nheight = 32\n",
    "version = 4,0\nwidth = 32\nheight = 32\n",
])
def test_missing_or_invalid_header_is_fatal(text):
    with pytest.raises(DmiParseError):
        parse_description(text)

def test_line_without_equals_is_fatal():
    with pytest.raises(DmiParseError):
        parse_description(HEADER + "state\n")

def test_unquoted_state_name_is_taken_as_is():
    doc = parse_description(HEADER + "state = idle\n")
    assert doc.states[0].name == "idle"

def test_lone_quote_is_not_stripped():
    doc = parse_description(HEADER + 'state = "\n')
    assert doc.states[0].name == '"'

def test_header_keys_rejected_after_first_state_even_between_states():
    with pytest.raises(DmiParseError):
        parse_description(HEADER + 'state = "a"\nheight = 32\nstate = "b"\n')


# -----------------------------
# Container
# -----------------------------

def test_extract_dmi_block():
    assert extract_dmi_block("junk # BEGIN DMI\nversion = 4.0\n# END DMI\n") == "\nversion = 4.0\n"
    assert extract_dmi_block("no block here") is None
    assert extract_dmi_block("# BEGIN DMI\nversion = 4.0\n") is None

def test_open_sheet_reads_description_from_png(idle_dmi):
    image, text = open_sheet(idle_dmi)
    assert image.size == (32, 32)
    doc = parse_description(text)
    assert [s.name for s in doc.states] == ["idle"]

def test_open_sheet_without_description_is_parse_error():
    with io.BytesIO() as buf:
        Image.new("RGBA", (32, 32)).save(buf, "PNG")
        data = buf.getvalue()
    with pytest.raises(DmiParseError):
        open_sheet(data)

def test_open_sheet_garbage_is_decode_error():
    with pytest.raises(SheetDecodeError):
        open_sheet(b"definitely not a png")

def test_open_sheet_truncated_png_is_decode_error():
    data = make_dmi(description(state("a")), [RED])
    with pytest.raises(SheetDecodeError):
        open_sheet(data[: len(data) // 2])
