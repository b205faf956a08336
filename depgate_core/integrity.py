"""Byte-level integrity checks for locally held artifacts."""

from __future__ import annotations

import hashlib
import hmac
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024


def file_sha256(path: Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bytes:
    h = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(chunk_size), b""):
            h.update(chunk)
    return h.digest()


def verify_file(
    path: Path | None,
    expected_digest: bytes,
    expected_size: int,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bool:
    """Return True if ``path`` holds exactly ``expected_size`` bytes hashing to ``expected_digest``.

    A file whose size matches but whose digest does not is deleted, so a poisoned
    artifact is never picked up again by a later pass. Read errors count as a
    failed verification.
    """

    if path is None:
        return False
    try:
        if not path.is_file():
            return False
        actual_size = path.stat().st_size
    except OSError:
        return False
    if actual_size != expected_size:
        logger.warning(
            "size mismatch for %s: found %s bytes, expected %s",
            path,
            actual_size,
            expected_size,
        )
        return False
    try:
        digest = file_sha256(path, chunk_size=chunk_size)
    except FileNotFoundError:
        logger.error("file vanished while verifying: %s", path)
        return False
    except OSError as exc:
        logger.error("unable to read %s for verification: %s", path, exc)
        return False
    if hmac.compare_digest(digest, expected_digest):
        return True
    logger.warning("digest mismatch for %s, deleting", path)
    discard_file(path)
    return False


def discard_file(path: Path) -> bool:
    """Delete ``path`` if present. Another process may have removed it first."""

    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.warning("unable to delete %s: %s", path, exc)
        return False
    return True
