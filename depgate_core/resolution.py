"""Local resolution of a single manifest entry."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Sequence

from .filesystem import LocalFiles
from .integrity import verify_file
from .manifest import ManifestEntry
from .models import Dependency

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalResolution:
    entry: ManifestEntry
    in_use: Path | None
    target: Path
    dependency: Dependency | None = None

    def pending(self) -> Dependency:
        """The dependency a fetch of the target file would satisfy."""

        return Dependency(self.in_use, self.target, self.entry.pattern)


def resolve_locally(
    entry: ManifestEntry,
    files: LocalFiles,
    candidates: Sequence[Path] | None = None,
) -> LocalResolution:
    """Try to satisfy ``entry`` from files already on this node.

    In order: the target file, the file currently in use, then any candidate
    whose name matches the entry's pattern. The first file that verifies wins.
    """

    in_use = files.in_use(entry.pattern)
    target = files.target_path(entry.filename)
    base = LocalResolution(entry=entry, in_use=in_use, target=target)

    def _valid(path: Path | None) -> bool:
        return verify_file(path, entry.sha256, entry.size, chunk_size=files.chunk_size)

    if _valid(target):
        logger.info("found file required by the new version: %s", target)
        return replace(base, dependency=Dependency(in_use, target, entry.pattern))

    if in_use is not None and _valid(in_use):
        logger.info("existing version of %s is fine for the update", in_use)
        return replace(base, dependency=Dependency(in_use, in_use, entry.pattern))

    if entry.pattern is None:
        return base

    if candidates is None:
        candidates = files.candidates()
    for candidate in candidates:
        if not entry.matches(candidate.name):
            continue
        if _valid(candidate):
            logger.info("found %s, meets requirement for %s", candidate.name, entry.name)
            return replace(base, dependency=Dependency(in_use, candidate, entry.pattern))
    return base
