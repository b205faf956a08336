"""Dependency checker gating deployment of a new build.

Each submitted manifest describes the exact artifacts a build needs. The
checker satisfies what it can from local files, asks the deployer to fetch the
rest, and hands a :class:`ResolvedDependencySet` to the deployer exactly once,
when every entry is satisfied and no essential fetch is outstanding. A single
bad entry or failed fetch withholds deployment for the whole build until a new
manifest is submitted.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Mapping, Sequence

from .config import CheckerConfig
from .deployer import Deployer
from .errors import FetchError, ManifestError
from .filesystem import LocalFiles
from .manifest import ManifestEntry, iter_entry_names, parse_manifest_entry
from .models import Dependency, ResolvedDependencySet
from .resolution import resolve_locally
from .sessions import FetchMode, FetchSession

logger = logging.getLogger(__name__)


class DependencyChecker:
    def __init__(
        self,
        deployer: Deployer,
        config: CheckerConfig | None = None,
        *,
        files: LocalFiles | None = None,
    ) -> None:
        self.deployer = deployer
        self.config = config or CheckerConfig()
        self.files = files or LocalFiles.from_config(self.config)
        # Re-entrant: a fetcher may report completion synchronously from inside fetch().
        self._lock = threading.RLock()
        self._dependencies: set[Dependency] = set()
        self._sessions: set[FetchSession] = set()
        self._broken = False
        self._deploying = False
        self._in_pass = False
        self._build = 0

    @property
    def build(self) -> int:
        with self._lock:
            return self._build

    @property
    def deploying(self) -> bool:
        with self._lock:
            return self._deploying

    @property
    def pending_fetches(self) -> int:
        with self._lock:
            return len(self._sessions)

    def is_broken(self) -> bool:
        with self._lock:
            return self._broken

    def submit(self, manifest: Mapping[str, str], build: int) -> ResolvedDependencySet | None:
        """Process the manifest for ``build``.

        Returns the resolved set if everything is already available locally, in
        which case the caller must deploy it. Returns None if deployment is
        withheld: either fetches are still running (deployment will be triggered
        by the last one) or the manifest is broken.
        """

        with self._lock:
            try:
                return self._submit(manifest, build)
            except Exception:
                self._broken = True
                logger.exception("processing dependencies for build %s broke", build)
                raise
            finally:
                self._in_pass = False

    def _submit(self, manifest: Mapping[str, str], build: int) -> ResolvedDependencySet | None:
        if self._deploying:
            logger.error("already deploying build %s, ignoring manifest for build %s", self._build, build)
            return None
        self._clear(build)
        self._in_pass = True
        candidates = self.files.candidates()
        for name in iter_entry_names(manifest):
            try:
                entry = parse_manifest_entry(manifest, name)
                self._resolve_entry(entry, candidates)
            except ManifestError as exc:
                logger.error("unable to update to build %s, manifest broken: %s", build, exc)
                self._broken = True
        self._in_pass = False
        if self._ready():
            return ResolvedDependencySet.of(build, self._dependencies)
        return None

    def _resolve_entry(self, entry: ManifestEntry, candidates: Sequence[Path]) -> None:
        resolution = resolve_locally(entry, self.files, candidates)
        if resolution.dependency is not None:
            self._dependencies.add(resolution.dependency)
            return
        if entry.locator is None:
            logger.error(
                "cannot get %s for build %s: no usable local file and no content locator",
                entry.name,
                self._build,
            )
            self._broken = True
            return
        self._fetch_essential(entry, entry.locator, resolution.pending())

    def _fetch_essential(self, entry: ManifestEntry, locator: str, dependency: Dependency) -> None:
        session = FetchSession(
            dependency,
            locator,
            FetchMode.ESSENTIAL,
            on_complete=self._on_fetch_complete,
        )
        self._sessions.add(session)
        try:
            session.start(
                self.deployer,
                expected_size=entry.size,
                expected_digest=entry.sha256,
                build=self._build,
            )
        except FetchError as exc:
            self._sessions.discard(session)
            self._broken = True
            logger.error("failed to start fetch of %s for build %s: %s", entry.name, self._build, exc)

    def _on_fetch_complete(self, session: FetchSession, error: FetchError | None) -> None:
        with self._lock:
            if session not in self._sessions:
                logger.debug("ignoring completion of superseded %r", session)
                return
            self._sessions.discard(session)
            if error is not None:
                self._broken = True
                return
            self._dependencies.add(session.dependency)
            if self._in_pass or not self._ready():
                return
        self.deploy()

    def _ready(self) -> bool:
        # The only place deploying becomes true.
        if self._broken or self._sessions or self._deploying:
            return False
        self._deploying = True
        return True

    def _clear(self, build: int) -> None:
        self._dependencies.clear()
        self._broken = False
        self._build = build
        sessions = list(self._sessions)
        self._sessions.clear()
        for session in sessions:
            session.cancel()

    def deploy(self) -> None:
        """Hand the current dependency set to the deployer. Call without holding the lock."""

        with self._lock:
            resolved = ResolvedDependencySet.of(self._build, self._dependencies)
        logger.info(
            "deploying build %s with %s dependencies (rewrite config: %s)",
            resolved.build,
            len(resolved.dependencies),
            resolved.must_rewrite_config,
        )
        self.deployer.deploy(resolved)
