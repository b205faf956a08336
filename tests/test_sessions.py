from __future__ import annotations

import logging
from pathlib import Path

import pytest

from depgate_core.errors import FetchError
from depgate_core.models import Dependency
from depgate_core.sessions import FetchMode, FetchSession


class _Handle:
    def __init__(self) -> None:
        self.cancel_calls = 0

    def cancel(self) -> None:
        self.cancel_calls += 1


class _Deployer:
    def __init__(self) -> None:
        self.handle = _Handle()
        self.calls: list[tuple] = []

    def fetch(self, locator, destination, expected_size, expected_digest, callback, build):
        self.calls.append((locator, destination, expected_size, expected_digest, callback, build))
        return self.handle


def _dep() -> Dependency:
    return Dependency(None, Path("lib-2.jar"))


def test_essential_session_reports_once() -> None:
    outcomes: list[tuple[FetchSession, FetchError | None]] = []
    session = FetchSession(_dep(), "CHK@x", FetchMode.ESSENTIAL, on_complete=lambda s, e: outcomes.append((s, e)))
    deployer = _Deployer()
    session.start(deployer, expected_size=10, expected_digest=b"\x01" * 32, build=3)

    assert deployer.calls == [("CHK@x", Path("lib-2.jar"), 10, b"\x01" * 32, session, 3)]
    session.on_success()
    session.on_failure(FetchError("late"))
    assert outcomes == [(session, None)]


def test_failure_is_reported_with_error() -> None:
    outcomes: list[FetchError | None] = []
    session = FetchSession(_dep(), "CHK@x", FetchMode.ESSENTIAL, on_complete=lambda s, e: outcomes.append(e))
    error = FetchError("route not found\nmore detail")
    session.on_failure(error)
    assert outcomes == [error]
    assert error.short_message == "route not found"


def test_cancel_is_idempotent_and_silences_callbacks() -> None:
    outcomes: list[object] = []
    session = FetchSession(_dep(), "CHK@x", FetchMode.ESSENTIAL, on_complete=lambda s, e: outcomes.append(e))
    deployer = _Deployer()
    session.start(deployer, expected_size=1, expected_digest=b"", build=1)

    session.cancel()
    session.cancel()
    session.on_success()

    assert deployer.handle.cancel_calls == 1
    assert session.cancelled
    assert outcomes == []


def test_cancel_before_start_cancels_handle_on_start() -> None:
    session = FetchSession(_dep(), "CHK@x", FetchMode.BEST_EFFORT)
    session.cancel()
    deployer = _Deployer()
    session.start(deployer, expected_size=1, expected_digest=b"", build=1)
    assert deployer.handle.cancel_calls == 1


def test_best_effort_only_logs(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)
    session = FetchSession(_dep(), "CHK@x", FetchMode.BEST_EFFORT)
    session.on_failure(FetchError("gone"))
    assert "failed to preload" in caplog.text
    assert not session.essential


def test_essential_requires_completion_hook() -> None:
    with pytest.raises(ValueError):
        FetchSession(_dep(), "CHK@x", FetchMode.ESSENTIAL)
