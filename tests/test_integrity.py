from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from depgate_core.integrity import discard_file, file_sha256, verify_file


def _write(path: Path, payload: bytes) -> tuple[bytes, int]:
    path.write_bytes(payload)
    return hashlib.sha256(payload).digest(), len(payload)


def test_verify_accepts_matching_file(tmp_path: Path) -> None:
    path = tmp_path / "lib-2.jar"
    digest, size = _write(path, b"library bytes")
    assert verify_file(path, digest, size) is True
    assert path.exists()


def test_verify_rejects_missing_or_none(tmp_path: Path) -> None:
    assert verify_file(None, b"\x00" * 32, 0) is False
    assert verify_file(tmp_path / "absent.jar", b"\x00" * 32, 0) is False


def test_size_mismatch_keeps_file_and_skips_hashing(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "lib-2.jar"
    digest, size = _write(path, b"library bytes")

    def _boom(*args, **kwargs):
        raise AssertionError("file must not be hashed on size mismatch")

    import depgate_core.integrity as integrity_mod

    monkeypatch.setattr(integrity_mod, "file_sha256", _boom)
    assert verify_file(path, digest, size + 1) is False
    assert path.exists()


def test_digest_mismatch_deletes_file(tmp_path: Path) -> None:
    path = tmp_path / "lib-2.jar"
    _, size = _write(path, b"poisoned bytes")
    assert verify_file(path, hashlib.sha256(b"expected").digest(), size) is False
    assert not path.exists()


def test_read_error_counts_as_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "lib-2.jar"
    digest, size = _write(path, b"library bytes")

    def _unreadable(*args, **kwargs):
        raise PermissionError("denied")

    import depgate_core.integrity as integrity_mod

    monkeypatch.setattr(integrity_mod, "file_sha256", _unreadable)
    assert verify_file(path, digest, size) is False
    assert path.exists()


def test_file_sha256_streams_in_chunks(tmp_path: Path) -> None:
    path = tmp_path / "big.bin"
    payload = bytes(range(256)) * 100
    path.write_bytes(payload)
    assert file_sha256(path, chunk_size=7) == hashlib.sha256(payload).digest()


def test_discard_file_tolerates_missing(tmp_path: Path) -> None:
    path = tmp_path / "gone.jar"
    assert discard_file(path) is False
    path.write_bytes(b"x")
    assert discard_file(path) is True
    assert not path.exists()
