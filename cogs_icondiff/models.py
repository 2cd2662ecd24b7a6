from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class StateSpec:
    name: str
    dirs: int = 1
    frames: int = 1
    delays: Tuple[float, ...] = ()
    rewind: bool = False
    loop: Optional[int] = None


@dataclass(frozen=True)
class SheetDocument:
    version: float
    width: int
    height: int
    states: Tuple[StateSpec, ...] = ()

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Cell size must be positive, got {self.width}x{self.height}")


@dataclass(frozen=True, eq=False)
class SpriteArtifact:
    """
    One rendered icon state. Compared by fingerprint, never by identity:
    the same sprite on both sides of a diff is two instances.
    """
    data: bytes = field(repr=False)
    fingerprint: str
    animated: bool = False

    @property
    def extension(self) -> str:
        return "gif" if self.animated else "png"


@dataclass
class DiffRecord:
    name: str
    before: Optional[SpriteArtifact] = None
    after: Optional[SpriteArtifact] = None
    error: Optional[str] = None

    @property
    def kind(self) -> str:
        if self.error is not None:
            return "failed"
        if self.before is None:
            return "added"
        if self.after is None:
            return "removed"
        return "modified"


@dataclass
class IconDiff:
    path: str
    file_id: int
    record: DiffRecord
