"""Shared helpers — input digests and timestamps."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from contact_sieve.models import InputDigest


def sha256_file(path: Path, chunk_size: int = 65536) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        while chunk := fh.read(chunk_size):
            digest.update(chunk)
    return digest.hexdigest()


def digest_inputs(paths: Iterable[Path]) -> list[InputDigest]:
    """Hash every input; unreadable files get an empty digest."""
    digests: list[InputDigest] = []
    for path in paths:
        path = Path(path)
        try:
            sha256 = sha256_file(path)
        except OSError:
            sha256 = ""
        digests.append(InputDigest(path=str(path.resolve()), sha256=sha256))
    return digests


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
