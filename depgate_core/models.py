"""Resolved dependency records handed to the deployer."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from .filesystem import path_identity

# An in-use file with one of these endings is only picked up when the launcher
# configuration names it explicitly, so its presence always forces a rewrite.
FORCE_REWRITE_SUFFIXES = (".jar.new",)


@dataclass(frozen=True)
class Dependency:
    in_use: Path | None
    target: Path
    pattern: re.Pattern[str] | None = None

    @property
    def needs_rewrite(self) -> bool:
        if self.in_use is None or path_identity(self.in_use) != path_identity(self.target):
            return True
        return self.in_use.name.lower().endswith(FORCE_REWRITE_SUFFIXES)

    def to_dict(self) -> dict[str, Any]:
        return {
            "in_use": str(self.in_use) if self.in_use is not None else None,
            "target": str(self.target),
            "pattern": self.pattern.pattern if self.pattern is not None else None,
        }


@dataclass(frozen=True)
class ResolvedDependencySet:
    """Everything the given build needs, verified and on disk."""

    build: int
    dependencies: frozenset[Dependency]
    must_rewrite_config: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "dependencies", frozenset(self.dependencies))
        object.__setattr__(
            self,
            "must_rewrite_config",
            any(dep.needs_rewrite for dep in self.dependencies),
        )

    @classmethod
    def of(cls, build: int, dependencies: Iterable[Dependency]) -> "ResolvedDependencySet":
        return cls(build=build, dependencies=frozenset(dependencies))

    def to_dict(self) -> dict[str, Any]:
        return {
            "build": self.build,
            "must_rewrite_config": self.must_rewrite_config,
            "dependencies": sorted(
                (dep.to_dict() for dep in self.dependencies),
                key=lambda item: item["target"],
            ),
        }
