from __future__ import annotations

from typing import Optional


class IconDiffError(Exception):
    """Base class for everything the diff engine raises on purpose."""


class DmiParseError(IconDiffError, ValueError):
    """
    The DMI description is malformed.

    Always fatal for the file it came from. Carries the offending key and
    line so the message can point at the exact spot.
    """

    def __init__(self, message: str, *, key: Optional[str] = None,
                 line_no: Optional[int] = None, line: Optional[str] = None):
        self.key = key
        self.line_no = line_no
        self.line = line

        detail = message
        if line_no is not None:
            detail = f"line {line_no}: {detail}"
        if line is not None:
            detail = f"{detail} ({line.strip()!r})"
        super().__init__(detail)


class SheetDecodeError(IconDiffError):
    """The PNG container or its pixel grid could not be decoded."""
