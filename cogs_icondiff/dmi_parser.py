"""
DMI description parsing.

A .dmi file is a PNG whose text metadata carries a block like:

    # BEGIN DMI
    version = 4.0
        width = 32
        height = 32
    state = "idle"
        dirs = 4
        frames = 2
        delay = 1,2
    # END DMI

Responsibilities:
- Open the PNG with Pillow and pull the DMI block out of its text chunks.
- Parse the block into a SheetDocument.

The grammar is strict on purpose: the file comes from an external tool, so
anything unexpected is reported instead of guessed at.
"""

from __future__ import annotations

import io
import logging
import re
from typing import Dict, List, Optional, Tuple

from PIL import Image

from cogs_icondiff.errors import DmiParseError, SheetDecodeError
from cogs_icondiff.models import SheetDocument, StateSpec

logger = logging.getLogger(__name__)


DMI_HEADER = "# BEGIN DMI"
DMI_FOOTER = "# END DMI"

HEADER_KEYS = ("version", "width", "height")
STATE_KEYS = ("dirs", "frames", "delay", "rewind", "loop", "hotspot")
VALID_DIRS = (1, 4, 8)

INT_RE = re.compile(r"^[+-]?\d+$")
FLOAT_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


# -----------------------------
# Container
# -----------------------------

def extract_dmi_block(text: str) -> Optional[str]:
    """
    Returns the text between the BEGIN/END markers, or None if there is no
    complete block.
    """
    start = (text or "").find(DMI_HEADER)
    if start < 0:
        return None
    start += len(DMI_HEADER)
    end = text.find(DMI_FOOTER, start)
    if end < 0:
        return None
    return text[start:end]

def open_sheet(data: bytes) -> Tuple[Image.Image, str]:
    """
    Decodes the PNG and returns (image, dmi_description).

    Pillow failures surface as SheetDecodeError; a readable image without
    a DMI block is a DmiParseError.
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (OSError, EOFError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise SheetDecodeError(f"Could not decode icon sheet: {e}") from e

    for key, value in image.info.items():
        if not isinstance(value, str):
            continue
        block = extract_dmi_block(value)
        if block is not None:
            logger.debug("Found DMI description in %r chunk (%d chars)", key, len(block))
            return image, block

    raise DmiParseError("No DMI description found in image metadata")


# -----------------------------
# Number helpers
# -----------------------------

def _parse_int(key: str, value: str, line_no: int, line: str) -> int:
    if not INT_RE.match(value):
        raise DmiParseError(f"Expected an integer for '{key}', got {value!r}",
                            key=key, line_no=line_no, line=line)
    return int(value)

def _parse_float(key: str, value: str, line_no: int, line: str) -> float:
    if not FLOAT_RE.match(value):
        raise DmiParseError(f"Expected a number for '{key}', got {value!r}",
                            key=key, line_no=line_no, line=line)
    return float(value)


# -----------------------------
# Description grammar
# -----------------------------

class _DescriptionParser:
    """
    Two sections: the header (version/width/height) and, after the first
    `state` key, a run of states. Keys are only valid in their own section.
    """

    def __init__(self):
        self.in_state = False
        self.header: Dict[str, float] = {}
        self.states: List[StateSpec] = []
        self.current: Optional[Dict[str, object]] = None

    def feed(self, line_no: int, line: str) -> None:
        if "=" not in line:
            raise DmiParseError("Expected 'key = value'", line_no=line_no, line=line)

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            raise DmiParseError("Missing key before '='", line_no=line_no, line=line)

        if key == "state":
            self._start_state(value, line_no, line)
        elif key in HEADER_KEYS:
            if self.in_state:
                raise DmiParseError(f"'{key}' is only valid in the header",
                                    key=key, line_no=line_no, line=line)
            self._header_value(key, value, line_no, line)
        elif key in STATE_KEYS:
            if not self.in_state:
                raise DmiParseError(f"'{key}' is only valid inside a state",
                                    key=key, line_no=line_no, line=line)
            self._state_value(key, value, line_no, line)
        else:
            raise DmiParseError(f"Unknown key '{key}'", key=key, line_no=line_no, line=line)

    def _require_header(self, line_no: Optional[int] = None, line: Optional[str] = None) -> None:
        for key in HEADER_KEYS:
            if key not in self.header:
                raise DmiParseError(f"Missing required header field '{key}'",
                                    key=key, line_no=line_no, line=line)

    def _header_value(self, key: str, value: str, line_no: int, line: str) -> None:
        if key == "version":
            self.header[key] = _parse_float(key, value, line_no, line)
            return

        size = _parse_int(key, value, line_no, line)
        if size <= 0:
            raise DmiParseError(f"'{key}' must be positive, got {size}",
                                key=key, line_no=line_no, line=line)
        self.header[key] = size

    def _start_state(self, value: str, line_no: int, line: str) -> None:
        if not self.in_state:
            self._require_header(line_no, line)
            self.in_state = True

        if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
            value = value[1:-1]

        self._flush()
        self.current = {"name": value}

    def _state_value(self, key: str, value: str, line_no: int, line: str) -> None:
        state = self.current
        if key == "dirs":
            dirs = _parse_int(key, value, line_no, line)
            if dirs not in VALID_DIRS:
                raise DmiParseError(f"'dirs' must be one of {VALID_DIRS}, got {dirs}",
                                    key=key, line_no=line_no, line=line)
            state["dirs"] = dirs
        elif key == "frames":
            frames = _parse_int(key, value, line_no, line)
            if frames < 1:
                raise DmiParseError(f"'frames' must be at least 1, got {frames}",
                                    key=key, line_no=line_no, line=line)
            state["frames"] = frames
        elif key == "delay":
            state["delays"] = tuple(
                _parse_float(key, part.strip(), line_no, line) for part in value.split(",")
            )
        elif key == "rewind":
            state["rewind"] = _parse_int(key, value, line_no, line) != 0
        elif key == "loop":
            loop = _parse_int(key, value, line_no, line)
            if loop < 0:
                raise DmiParseError(f"'loop' cannot be negative, got {loop}",
                                    key=key, line_no=line_no, line=line)
            state["loop"] = loop
        # hotspot: recognized, no effect on rendering

    def _flush(self) -> None:
        if self.current is not None:
            self.states.append(StateSpec(**self.current))
            self.current = None

    def finish(self) -> SheetDocument:
        self._require_header()
        self._flush()
        return SheetDocument(
            version=self.header["version"],
            width=int(self.header["width"]),
            height=int(self.header["height"]),
            states=tuple(self.states),
        )


def parse_description(text: str) -> SheetDocument:
    """
    Parses a DMI description (the text inside the BEGIN/END markers).

    Raises DmiParseError on the first problem; nothing is recovered.
    """
    parser = _DescriptionParser()
    for line_no, line in enumerate((text or "").splitlines(), start=1):
        if not line.strip():
            continue
        parser.feed(line_no, line)

    document = parser.finish()
    logger.debug("Parsed DMI v%s (%dx%d) with %d states",
                 document.version, document.width, document.height, len(document.states))
    return document
