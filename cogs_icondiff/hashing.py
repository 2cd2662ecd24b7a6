"""
Content fingerprints for rendered sprites.
"""

from __future__ import annotations

import hashlib


def sha256_bytes(b: bytes) -> str:
    return hashlib.sha256(b).hexdigest()

def fingerprint(data: bytes) -> str:
    return sha256_bytes(data)
