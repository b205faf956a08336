"""Contracts between the dependency gate and the code that fetches and deploys."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .errors import FetchError
from .models import ResolvedDependencySet


class FetchHandle(Protocol):
    def cancel(self) -> None: ...


class FetchCallback(Protocol):
    def on_success(self) -> None: ...

    def on_failure(self, error: FetchError) -> None: ...


class Deployer(Protocol):
    def fetch(
        self,
        locator: str,
        destination: Path,
        expected_size: int,
        expected_digest: bytes,
        callback: FetchCallback,
        build: int,
    ) -> FetchHandle:
        """Start fetching ``locator`` into ``destination``.

        Raises FetchError if the request cannot be started. Completion is reported
        through ``callback``, usually from a thread owned by the fetcher.
        """
        ...

    def deploy(self, resolved: ResolvedDependencySet) -> None: ...

    def add_dependency(self, expected_digest: bytes, path: Path) -> None:
        """Offer ``path`` to peers as the content for ``expected_digest``."""
        ...
