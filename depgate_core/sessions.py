"""In-flight fetch bookkeeping."""

from __future__ import annotations

import enum
import logging
import threading
from typing import Callable

from .deployer import Deployer, FetchHandle
from .errors import FetchError
from .models import Dependency

logger = logging.getLogger(__name__)

CompletionHook = Callable[["FetchSession", "FetchError | None"], None]


class FetchMode(str, enum.Enum):
    ESSENTIAL = "essential"
    BEST_EFFORT = "best-effort"


class FetchSession:
    """One outstanding fetch of ``dependency.target`` from ``locator``.

    Essential sessions report their outcome to ``on_complete``; best-effort
    sessions only log. Once cancelled, a session never reports again.
    """

    def __init__(
        self,
        dependency: Dependency,
        locator: str,
        mode: FetchMode,
        *,
        on_complete: CompletionHook | None = None,
    ) -> None:
        if mode is FetchMode.ESSENTIAL and on_complete is None:
            raise ValueError("essential fetch sessions need a completion hook")
        self.dependency = dependency
        self.locator = locator
        self.mode = mode
        self._on_complete = on_complete
        self._handle: FetchHandle | None = None
        self._lock = threading.Lock()
        self._cancelled = False
        self._finished = False

    @property
    def essential(self) -> bool:
        return self.mode is FetchMode.ESSENTIAL

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self, deployer: Deployer, *, expected_size: int, expected_digest: bytes, build: int) -> None:
        """Ask the deployer to fetch. Raises FetchError if it cannot start."""

        handle = deployer.fetch(
            self.locator,
            self.dependency.target,
            expected_size,
            expected_digest,
            self,
            build,
        )
        with self._lock:
            self._handle = handle
            cancel_now = self._cancelled
        if cancel_now:
            handle.cancel()

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            handle = self._handle
        logger.debug("cancelling fetch of %s", self.dependency.target)
        if handle is not None:
            handle.cancel()

    def on_success(self) -> None:
        if not self._claim():
            return
        if not self.essential:
            logger.info("preloaded %s, it may be used by the next update", self.dependency.target)
            return
        logger.info("downloaded %s needed for the update", self.dependency.target)
        self._notify(None)

    def on_failure(self, error: FetchError) -> None:
        if not self._claim():
            return
        if not self.essential:
            logger.error("failed to preload %s from %s: %s", self.dependency.target, self.locator, error)
            return
        logger.error(
            "failed to fetch %s needed for the next update (%s), waiting for a new manifest",
            self.dependency.target,
            error.short_message if isinstance(error, FetchError) else error,
        )
        self._notify(error)

    def _claim(self) -> bool:
        with self._lock:
            if self._cancelled:
                logger.debug("ignoring completion of cancelled fetch of %s", self.dependency.target)
                return False
            if self._finished:
                logger.debug("ignoring repeated completion of fetch of %s", self.dependency.target)
                return False
            self._finished = True
            return True

    def _notify(self, error: FetchError | None) -> None:
        if self._on_complete is not None:
            self._on_complete(self, error)

    def __repr__(self) -> str:
        return f"FetchSession(target={str(self.dependency.target)!r}, mode={self.mode.value})"
