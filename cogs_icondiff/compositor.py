"""
Sprite compositing for DMI sheets.

Responsibilities:
- Walk the sheet grid cell by cell with one cursor shared by every state.
- Stitch multi-direction states into a horizontal strip per frame.
- Turn multi-frame states into GIF animations (including rewind/ping-pong).
- Hash the encoded output and hand out one artifact per distinct result.

Pure Pillow work: no Discord, no network. Decode errors are not caught here.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

from PIL import Image

from cogs_icondiff.errors import SheetDecodeError
from cogs_icondiff.hashing import fingerprint
from cogs_icondiff.models import SheetDocument, SpriteArtifact, StateSpec

logger = logging.getLogger(__name__)

T = TypeVar("T")

# BYOND falls back to one tick when a frame has no delay
DEFAULT_DELAY = 1.0
TRANSPARENT = (0, 0, 0, 0)


# -----------------------------
# Grid walking
# -----------------------------

def icons_per_line(sheet_width: int, cell_width: int) -> int:
    count = sheet_width // cell_width
    if count < 1:
        raise SheetDecodeError(f"Sheet is {sheet_width}px wide, narrower than one {cell_width}px cell")
    return count


@dataclass
class RasterCursor:
    per_line: int
    index: int = 0

    @property
    def position(self) -> Tuple[int, int]:
        return self.index % self.per_line, self.index // self.per_line

    def advance(self) -> Tuple[int, int]:
        """Returns the (column, row) of the next cell and moves past it."""
        position = self.position
        self.index += 1
        return position


def slice_cell(sheet: Image.Image, cursor: RasterCursor, width: int, height: int) -> Image.Image:
    column, row = cursor.advance()
    left, top = column * width, row * height
    box = (left, top, left + width, top + height)
    if box[3] > sheet.height:
        raise SheetDecodeError(
            f"Cell {cursor.index - 1} at row {row} is outside the {sheet.width}x{sheet.height} sheet"
        )
    return sheet.crop(box)

def stitch_directions(cells: Sequence[Image.Image], width: int, height: int) -> Image.Image:
    strip = Image.new("RGBA", (width * len(cells), height), TRANSPARENT)
    for i, cell in enumerate(cells):
        strip.paste(cell, (i * width, 0))
    return strip


# -----------------------------
# Animation
# -----------------------------

@dataclass
class FrameSequence(Generic[T]):
    """
    Frames in playback order.

    `delays[i]` is the delay (hundredths of a second) of the transition from
    frames[i] to frames[i + 1]; `closing_delay` is the one back to frames[0].
    """
    frames: List[T]
    delays: List[int]
    closing_delay: int

    @property
    def durations(self) -> List[int]:
        """Per-frame display time: each frame is held for the transition leaving it."""
        return self.delays + [self.closing_delay]


def ticks_to_centiseconds(ticks: float) -> int:
    return int(round(ticks * 10))

def _delay_at(delays: Sequence[float], index: int) -> float:
    if 0 <= index < len(delays):
        return delays[index]
    return DEFAULT_DELAY

def expand_frames(frames: Sequence[T], delays: Sequence[float], rewind: bool = False) -> FrameSequence[T]:
    """
    Builds the playback sequence for one state.

    Forward transition i -> i+1 uses delays[i]. With rewind, frames
    F-2 .. 1 are appended in reverse and the transition k -> k-1 reuses the
    delay of k-1 -> k, so [A,B,C] with delays [1,2] plays A,B,C,B with
    transitions 10,20,20 and closes back to A with 10.
    """
    count = len(frames)
    sequence = list(frames)
    transitions = [_delay_at(delays, i) for i in range(count - 1)]

    if rewind and count > 1:
        sequence += [frames[k - 1] for k in range(count - 1, 1, -1)]
        transitions += [_delay_at(delays, k - 1) for k in range(count - 1, 1, -1)]
        closing = _delay_at(delays, 0)
    else:
        closing = _delay_at(delays, count - 1)

    return FrameSequence(
        frames=sequence,
        delays=[ticks_to_centiseconds(d) for d in transitions],
        closing_delay=ticks_to_centiseconds(closing),
    )


# -----------------------------
# Encoding
# -----------------------------

def encode_static(image: Image.Image) -> bytes:
    with io.BytesIO() as buf:
        image.save(buf, "PNG")
        return buf.getvalue()

def encode_animation(sequence: FrameSequence[Image.Image], loop: Optional[int] = None) -> bytes:
    frames = sequence.frames
    with io.BytesIO() as buf:
        frames[0].save(
            buf,
            "GIF",
            save_all=True,
            append_images=frames[1:],
            # Pillow takes milliseconds; GIF stores hundredths
            duration=[cs * 10 for cs in sequence.durations],
            loop=0 if loop is None else loop,
            disposal=2,
        )
        return buf.getvalue()


# -----------------------------
# States
# -----------------------------

def render_state(state: StateSpec, document: SheetDocument, sheet: Image.Image,
                 cursor: RasterCursor) -> SpriteArtifact:
    width, height = document.width, document.height

    frame_images: List[Image.Image] = []
    for _ in range(state.frames):
        cells = [slice_cell(sheet, cursor, width, height) for _ in range(state.dirs)]
        if state.dirs == 1:
            frame_images.append(cells[0])
        else:
            frame_images.append(stitch_directions(cells, width, height))

    if state.frames == 1:
        data = encode_static(frame_images[0])
        animated = False
    else:
        sequence = expand_frames(frame_images, state.delays, state.rewind)
        data = encode_animation(sequence, state.loop)
        animated = True

    return SpriteArtifact(data=data, fingerprint=fingerprint(data), animated=animated)

def unique_name(name: str, taken: Dict[str, object]) -> str:
    if name not in taken:
        return name
    n = 2
    while f"{name}-{n}" in taken:
        n += 1
    return f"{name}-{n}"

def composite_sheet(document: Optional[SheetDocument],
                    sheet: Optional[Image.Image]) -> Dict[str, SpriteArtifact]:
    """
    Renders every state of the document into {name: artifact}.

    The dedup table lives only for this call, so two sheets never share
    artifact instances.
    """
    if document is None and sheet is None:
        return {}
    if document is None or sheet is None:
        raise ValueError("Need both a document and a sheet image, or neither")

    sheet = sheet.convert("RGBA")
    cursor = RasterCursor(icons_per_line(sheet.width, document.width))

    by_fingerprint: Dict[str, SpriteArtifact] = {}
    result: Dict[str, SpriteArtifact] = {}

    for state in document.states:
        artifact = render_state(state, document, sheet, cursor)

        existing = by_fingerprint.get(artifact.fingerprint)
        if existing is not None:
            logger.debug("State %r renders identically to an earlier state", state.name)
            artifact = existing
        else:
            by_fingerprint[artifact.fingerprint] = artifact

        result[unique_name(state.name, result)] = artifact

    logger.debug("Rendered %d states into %d distinct sprites", len(result), len(by_fingerprint))
    return result
