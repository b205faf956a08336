"""Startup reconciliation against the manifest of the running build.

Serves verified in-use artifacts to peers, preloads missing ones in the
background and deletes stale copies. Never touches checker state, and running
it again with the same files does no additional work.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Sequence

from .config import CheckerConfig
from .deployer import Deployer
from .errors import FetchError, ManifestError
from .filesystem import LocalFiles, path_identity
from .integrity import discard_file, verify_file
from .manifest import ManifestEntry, iter_entry_names, parse_manifest_entry
from .models import Dependency
from .sessions import FetchMode, FetchSession
from .versions import compare_versions, read_artifact_version

logger = logging.getLogger(__name__)


def reconcile(
    manifest: Mapping[str, str],
    deployer: Deployer,
    build: int,
    config: CheckerConfig | None = None,
    *,
    files: LocalFiles | None = None,
) -> bool:
    """Return False if any entry of ``manifest`` cannot be parsed; nothing is done then."""

    files = files or LocalFiles.from_config(config or CheckerConfig())
    entries: list[tuple[ManifestEntry, Path]] = []
    for name in iter_entry_names(manifest):
        try:
            entry = parse_manifest_entry(manifest, name, strict=True)
            entries.append((entry, files.target_path(entry.filename)))
        except ManifestError as exc:
            logger.error("manifest for running build %s broken: %s", build, exc)
            return False

    candidates = files.candidates()
    for entry, target in entries:
        in_use = files.in_use(entry.pattern)
        _serve_or_preload(entry, in_use, target, deployer, build, files)
        purge_stale(entry, in_use, target, candidates)
    return True


def _serve_or_preload(
    entry: ManifestEntry,
    in_use: Path | None,
    target: Path,
    deployer: Deployer,
    build: int,
    files: LocalFiles,
) -> None:
    if in_use is not None and verify_file(in_use, entry.sha256, entry.size, chunk_size=files.chunk_size):
        logger.info("will serve %s to peers", in_use)
        deployer.add_dependency(entry.sha256, in_use)
        return
    if in_use is not None and in_use.exists():
        logger.warning(
            "%s is using a non-standard file %s, peers cannot fetch it from us",
            entry.name,
            in_use,
        )
    if verify_file(target, entry.sha256, entry.size, chunk_size=files.chunk_size):
        logger.info("%s already preloaded", target)
        return
    # Strict parsing guarantees a locator.
    locator = entry.locator or ""
    session = FetchSession(Dependency(in_use, target, entry.pattern), locator, FetchMode.BEST_EFFORT)
    logger.info("preloading %s for the next update", target)
    try:
        session.start(deployer, expected_size=entry.size, expected_digest=entry.sha256, build=build)
    except FetchError as exc:
        logger.error("failed to preload %s from %s: %s", target, locator, exc)


def purge_stale(
    entry: ManifestEntry,
    in_use: Path | None,
    target: Path,
    candidates: Sequence[Path],
) -> list[Path]:
    """Delete candidates for ``entry`` that are not newer than the required version.

    The in-use file and the entry's target file are always kept, as is any
    candidate whose embedded version is strictly newer.
    """

    keep = {path_identity(target)}
    if in_use is not None:
        keep.add(path_identity(in_use))
    deleted: list[Path] = []
    for candidate in candidates:
        if not entry.matches(candidate.name):
            continue
        if path_identity(candidate) in keep:
            continue
        version = read_artifact_version(candidate)
        if version is None:
            reason = "no version"
        elif compare_versions(version, entry.version) <= 0:
            reason = "outdated"
        else:
            continue
        if discard_file(candidate):
            logger.info("deleted old dependency file (%s): %s", reason, candidate)
            deleted.append(candidate)
    return deleted
