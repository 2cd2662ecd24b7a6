"""
Diffing + orchestration for icon sheets.

Responsibilities:
- Turn raw .dmi bytes into {state name: SpriteArtifact} (parse + composite).
- Compare two such maps into ordered DiffRecords.
- Wrap both into one "generate diffs" call that degrades to a placeholder
  record when the image itself cannot be decoded.
- Number results across a batch of changed files.

This module is intentionally pure (no Discord state, no network), so it's
easy to test.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from cogs_icondiff.compositor import composite_sheet
from cogs_icondiff.dmi_parser import open_sheet, parse_description
from cogs_icondiff.errors import SheetDecodeError
from cogs_icondiff.models import DiffRecord, IconDiff, SpriteArtifact

logger = logging.getLogger(__name__)

ICON_EXTENSION = ".dmi"


def is_icon_path(path: str) -> bool:
    return (path or "").lower().endswith(ICON_EXTENSION)


# -----------------------------
# Extraction
# -----------------------------

def load_sprites(data: Optional[bytes]) -> Dict[str, SpriteArtifact]:
    """
    Renders every state in a .dmi file. None (file absent on this side)
    gives an empty map.
    """
    if data is None:
        return composite_sheet(None, None)

    image, description = open_sheet(data)
    document = parse_description(description)
    return composite_sheet(document, image)


# -----------------------------
# Diff
# -----------------------------

def diff_sprites(before: Mapping[str, SpriteArtifact],
                 after: Mapping[str, SpriteArtifact]) -> List[DiffRecord]:
    """
    Records for removed and modified states come first, in `before` order,
    followed by added states in `after` order. Unchanged states (equal
    fingerprints) produce nothing.
    """
    remaining = dict(after)
    records: List[DiffRecord] = []

    for name, old in before.items():
        new = remaining.pop(name, None)
        if new is None:
            records.append(DiffRecord(name=name, before=old))
        elif new.fingerprint != old.fingerprint:
            records.append(DiffRecord(name=name, before=old, after=new))

    for name, new in remaining.items():
        records.append(DiffRecord(name=name, after=new))

    return records


def render_failed_record(error: Exception) -> DiffRecord:
    return DiffRecord(name="", error=str(error))


def _load_side(data: Optional[bytes]):
    try:
        return load_sprites(data)
    except SheetDecodeError as e:
        return e


def _settle(before_outcome, after_outcome) -> List[DiffRecord]:
    """
    Both sides have been attempted. Any error other than SheetDecodeError
    (grammar errors included) is raised, before side first; decode failures
    only degrade once neither side has anything worse to report.
    """
    outcomes = (before_outcome, after_outcome)
    for outcome in outcomes:
        if isinstance(outcome, BaseException) and not isinstance(outcome, SheetDecodeError):
            raise outcome

    for outcome in outcomes:
        if isinstance(outcome, SheetDecodeError):
            logger.warning("Icon render failed: %s", outcome)
            return [render_failed_record(outcome)]

    return diff_sprites(before_outcome, after_outcome)


def generate_diffs(before: Optional[bytes], after: Optional[bytes]) -> List[DiffRecord]:
    """
    Full pipeline for one file. DmiParseError propagates; SheetDecodeError
    becomes a single "render failed" record.
    """
    return _settle(_load_side(before), _load_side(after))


async def generate_diffs_async(before: Optional[bytes], after: Optional[bytes]) -> List[DiffRecord]:
    """
    Same as generate_diffs, with each side rendered in its own worker
    thread so the event loop stays responsive.
    """
    before_outcome, after_outcome = await asyncio.gather(
        asyncio.to_thread(load_sprites, before),
        asyncio.to_thread(load_sprites, after),
        return_exceptions=True,
    )
    return _settle(before_outcome, after_outcome)


# -----------------------------
# Batches
# -----------------------------

def diff_icon_files(changes: Mapping[str, Tuple[Optional[bytes], Optional[bytes]]]) -> List[IconDiff]:
    """
    Diffs every changed .dmi in `changes` ({path: (before, after)}), in order.
    File ids run from 1 across the whole batch. Non-.dmi paths are skipped.
    """
    results: List[IconDiff] = []
    for path, (before, after) in changes.items():
        if not is_icon_path(path):
            logger.debug("Skipping non-icon file %s", path)
            continue

        records = generate_diffs(before, after)
        logger.debug("%s: %d changed states", path, len(records))
        results.extend(_number(path, records, start=len(results)))

    return results


def _number(path: str, records: Iterable[DiffRecord], start: int) -> List[IconDiff]:
    return [IconDiff(path=path, file_id=start + i, record=r) for i, r in enumerate(records, start=1)]
