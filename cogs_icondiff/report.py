"""
Human-readable rendering of icon diffs.

Records are numbered in the order the engine emitted them; the numbers are
what the paged view and the attachment file names refer to.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from cogs_icondiff.models import DiffRecord, SpriteArtifact

MARKERS = {
    "added": "+",
    "removed": "-",
    "modified": "~",
    "failed": "!",
}


def display_name(record: DiffRecord) -> str:
    if record.kind == "failed":
        return "render failed"
    # Empty state names are legal in DMI files
    return record.name if record.name else '""'

def describe(record: DiffRecord) -> str:
    if record.kind == "failed":
        return f"{display_name(record)}: {record.error}"
    return f"{display_name(record)} ({record.kind})"

def summarize(records: Sequence[DiffRecord], *, path: Optional[str] = None,
              max_chars: int = 3500) -> str:
    """
    Returns a ```diff block listing every record with its number, e.g.

        + 1. walk (added)
        ~ 2. idle (modified)
    """
    lines: List[str] = [
        f"{MARKERS[r.kind]} {i}. {describe(r)}" for i, r in enumerate(records, start=1)
    ]
    body = "\n".join(lines) or "No icon state changes."
    header = f"**{path}**\n" if path else ""

    out = header + "```diff\n" + body + "\n```"
    if len(out) > max_chars:
        # Keep header/footer intact
        budget = max_chars - len(header) - len("```diff\n\n```") - 5
        trimmed_body = body[:max(0, budget)].rstrip() + "\n..."
        out = header + "```diff\n" + trimmed_body + "\n```"

    return out

def attachment_name(index: int, side: str, artifact: SpriteArtifact) -> str:
    return f"{index}_{side}.{artifact.extension}"
