"""
Runtime settings for the icon diff bot.

Responsibilities:
- Keep one DEFAULTS dict as the source of truth for every setting:
    - command_prefix: prefix for text commands
    - max_attachment_bytes: refuse .dmi attachments larger than this
    - max_records_to_post: cap on records paged through in one reply
    - max_summary_chars: truncation limit for the posted summary
    - max_concurrent_diffs: throttle on simultaneous renders
- Backfill from the environment: ICONDIFF_<KEY> overrides <key>.
  A .env file is loaded first via python-dotenv.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

ENV_PREFIX = "ICONDIFF_"

DEFAULTS: Dict[str, Any] = {
    "command_prefix": "f.",
    "max_attachment_bytes": 8 * 1024 * 1024,
    "max_records_to_post": 25,
    "max_summary_chars": 1900,   # discord message limit is 2000
    "max_concurrent_diffs": 2,   # throttle
}


def env_name(key: str) -> str:
    return ENV_PREFIX + key.upper()

def load_config(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Returns DEFAULTS with any environment overrides applied, coerced to the
    default's type. Pass `env` to read from a mapping instead of os.environ.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    cfg = dict(DEFAULTS)
    for key, default in DEFAULTS.items():
        raw = env.get(env_name(key))
        if raw is None:
            continue
        try:
            cfg[key] = type(default)(raw.strip())
        except ValueError:
            raise ValueError(f"Invalid value for {env_name(key)}: {raw!r}") from None
    return cfg
