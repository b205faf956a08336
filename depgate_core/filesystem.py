"""Classpath and working-directory queries used during resolution."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from .config import CheckerConfig
from .errors import ManifestError

logger = logging.getLogger(__name__)


def list_candidates(directory: Path, extension: str, exclude_names: Iterable[str]) -> list[Path]:
    """Regular files in ``directory`` ending with ``extension``, minus reserved names.

    Both checks are case-insensitive. The result is sorted by name so passes are
    repeatable.
    """

    suffix = extension.lower()
    excluded = {name.lower() for name in exclude_names}
    try:
        children = sorted(directory.iterdir(), key=lambda item: item.name)
    except OSError as exc:
        logger.warning("unable to list %s: %s", directory, exc)
        return []
    results: list[Path] = []
    for child in children:
        lowered = child.name.lower()
        if not lowered.endswith(suffix) or lowered in excluded:
            continue
        if not child.is_file():
            continue
        results.append(child)
    return results


def path_identity(path: Path) -> Path:
    try:
        return path.resolve()
    except OSError:
        return path.absolute()


def find_in_classpath(pattern: re.Pattern[str] | None, classpath: Sequence[str]) -> Path | None:
    """First classpath entry whose filename fully matches ``pattern``.

    The file may not exist yet; callers verify it.
    """

    if pattern is None:
        return None
    for item in classpath:
        path = Path(item)
        if pattern.fullmatch(path.name):
            return path
    return None


@dataclass(frozen=True)
class LocalFiles:
    """Local view of the node: where artifacts live and what is currently loaded."""

    root: Path
    classpath: tuple[str, ...] = ()
    extension: str = ".jar"
    reserved_names: tuple[str, ...] = ()
    chunk_size: int = 1024 * 1024

    @classmethod
    def from_config(cls, config: CheckerConfig) -> "LocalFiles":
        return cls(
            root=config.working_dir,
            classpath=tuple(config.classpath),
            extension=config.artifact_suffix,
            reserved_names=tuple(config.reserved_names),
            chunk_size=config.digest_chunk_size,
        )

    def resolve(self, filename: Path) -> Path:
        return filename if filename.is_absolute() else self.root / filename

    def target_path(self, filename: Path) -> Path:
        """Location of a manifest filename. It must stay inside ``root``."""

        target = self.root / filename
        root = path_identity(self.root)
        resolved = path_identity(target)
        if filename.is_absolute() or root not in resolved.parents:
            raise ManifestError(f"filename escapes {self.root}: {filename}", field="filename")
        return target

    def candidates(self) -> list[Path]:
        return list_candidates(self.root, self.extension, self.reserved_names)

    def in_use(self, pattern: re.Pattern[str] | None) -> Path | None:
        found = find_in_classpath(pattern, self.classpath)
        return self.resolve(found) if found is not None else None
