from __future__ import annotations

import hashlib


def sha1_hex(data: bytes) -> str:
    # SHA-1 is what the upstream asset protocol names objects by.
    return hashlib.sha1(data).hexdigest()


def verify_sha1(data: bytes, expected: str) -> bool:
    return sha1_hex(data) == str(expected or "").strip().lower()
