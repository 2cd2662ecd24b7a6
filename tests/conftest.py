"""
Shared fixtures: small .dmi files built in memory with Pillow.
"""

from __future__ import annotations

import io
from typing import Optional, Sequence, Tuple

import pytest
from PIL import Image
from PIL.PngImagePlugin import PngInfo

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
YELLOW = (255, 255, 0, 255)
WHITE = (255, 255, 255, 255)

Color = Tuple[int, int, int, int]


def make_sheet(cells: Sequence[Color], *, size: int = 32, per_line: Optional[int] = None) -> Image.Image:
    per_line = per_line or max(1, len(cells))
    rows = max(1, -(-len(cells) // per_line))
    sheet = Image.new("RGBA", (per_line * size, rows * size), (0, 0, 0, 0))
    for i, color in enumerate(cells):
        left, top = (i % per_line) * size, (i // per_line) * size
        sheet.paste(Image.new("RGBA", (size, size), color), (left, top))
    return sheet

def make_dmi(description: str, cells: Sequence[Color], *, size: int = 32,
             per_line: Optional[int] = None) -> bytes:
    info = PngInfo()
    info.add_text("Description", f"# BEGIN DMI\n{description.strip()}\n# END DMI\n", zip=True)
    with io.BytesIO() as buf:
        make_sheet(cells, size=size, per_line=per_line).save(buf, "PNG", pnginfo=info)
        return buf.getvalue()

def description(*states: str, width: int = 32, height: int = 32) -> str:
    header = f"version = 4.0\n\twidth = {width}\n\theight = {height}\n"
    return header + "\n".join(states)

def state(name: str, **keys) -> str:
    lines = [f'state = "{name}"']
    for key, value in keys.items():
        lines.append(f"\t{key} = {value}")
    return "\n".join(lines)


@pytest.fixture
def idle_dmi() -> bytes:
    return make_dmi(description(state("idle", dirs=1, frames=1)), [RED])
