from __future__ import annotations

import logging
from pathlib import Path

import pytest

from audio_meta.infrastructure.temp_files import ResourceGuard, unique_resource_name


def test_acquire_creates_uniquely_named_files(tmp_path: Path) -> None:
    first = ResourceGuard.acquire(directory=tmp_path, suffix=".wav")
    second = ResourceGuard.acquire(directory=tmp_path, suffix=".wav")
    try:
        assert first.path != second.path
        assert first.path.exists() and second.path.exists()
        assert first.path.name.startswith("audio-meta-")
        assert first.path.suffix == ".wav"
    finally:
        first.release()
        second.release()


def test_unique_resource_name_never_repeats() -> None:
    names = {unique_resource_name(".mp3") for _ in range(200)}

    assert len(names) == 200


def test_write_seal_and_release(tmp_path: Path) -> None:
    guard = ResourceGuard.acquire(directory=tmp_path)
    guard.write(b"abc")
    guard.write(b"def")
    path = guard.seal()

    assert path.read_bytes() == b"abcdef"
    assert guard.bytes_written == 6

    assert guard.release() is True
    assert guard.released
    assert not path.exists()


def test_release_is_idempotent(tmp_path: Path) -> None:
    guard = ResourceGuard.acquire(directory=tmp_path)

    assert guard.release() is True
    assert guard.release() is False
    assert list(tmp_path.iterdir()) == []


def test_release_before_seal_closes_and_deletes(tmp_path: Path) -> None:
    guard = ResourceGuard.acquire(directory=tmp_path)
    guard.write(b"partial")

    guard.release()

    assert list(tmp_path.iterdir()) == []


def test_release_failure_is_logged_not_raised(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    guard = ResourceGuard.acquire(directory=tmp_path)
    guard.seal().unlink()

    with caplog.at_level(logging.WARNING, logger="audio_meta.infrastructure.temp_files"):
        assert guard.release() is True

    assert "cleanup failed" in caplog.text


def test_write_after_seal_is_rejected(tmp_path: Path) -> None:
    with ResourceGuard.acquire(directory=tmp_path) as guard:
        guard.seal()
        with pytest.raises(RuntimeError):
            guard.write(b"late")

    assert list(tmp_path.iterdir()) == []


class DiskFullHandle:
    def __init__(self, handle) -> None:
        self._handle = handle

    def write(self, chunk: bytes) -> int:
        return self._handle.write(chunk)

    def close(self) -> None:
        self._handle.close()
        raise OSError(28, "No space left on device")


def test_release_deletes_file_even_when_close_fails(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    guard = ResourceGuard.acquire(directory=tmp_path)
    guard._handle = DiskFullHandle(guard._handle)
    guard.write(b"partial download")

    with caplog.at_level(logging.WARNING, logger="audio_meta.infrastructure.temp_files"):
        assert guard.release() is True

    assert list(tmp_path.iterdir()) == []
    assert "failed to close" in caplog.text
