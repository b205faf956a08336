"""Workspace configuration for the dependency gate."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigError
from .integrity import DEFAULT_CHUNK_SIZE

CONFIG_SECTION = "depgate"
RESERVED_NAMES = (
    "freenet.jar",
    "freenet.jar.new",
    "freenet-stable-latest.jar",
    "freenet-stable-latest.jar.new",
)


def _resolve_env_value(value: Any) -> Any:
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        env_name = value[2:-1].strip()
        if env_name:
            return os.getenv(env_name, "")
    return value


def _split_classpath(value: str) -> tuple[str, ...]:
    return tuple(item for item in value.split(os.pathsep) if item.strip())


def default_classpath() -> tuple[str, ...]:
    return _split_classpath(os.environ.get("CLASSPATH", ""))


@dataclass(frozen=True)
class CheckerConfig:
    working_dir: Path = Path(".")
    classpath: tuple[str, ...] = field(default_factory=default_classpath)
    artifact_suffix: str = ".jar"
    reserved_names: tuple[str, ...] = RESERVED_NAMES
    digest_chunk_size: int = DEFAULT_CHUNK_SIZE

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, base_dir: Path | None = None) -> "CheckerConfig":
        raw = {str(key): _resolve_env_value(value) for key, value in data.items()}

        working_dir = Path(str(raw.get("working_dir") or "."))
        if base_dir is not None and not working_dir.is_absolute():
            working_dir = base_dir / working_dir

        classpath_raw = raw.get("classpath")
        if classpath_raw is None:
            classpath = default_classpath()
        elif isinstance(classpath_raw, str):
            classpath = _split_classpath(classpath_raw)
        elif isinstance(classpath_raw, list):
            classpath = tuple(str(_resolve_env_value(item)) for item in classpath_raw if str(item).strip())
        else:
            raise ConfigError("classpath must be a string or a list of paths")

        reserved_raw = raw.get("reserved_names")
        if reserved_raw is None:
            reserved = RESERVED_NAMES
        elif isinstance(reserved_raw, list):
            reserved = tuple(str(item).strip().lower() for item in reserved_raw if str(item).strip())
        else:
            raise ConfigError("reserved_names must be a list of filenames")

        suffix = str(raw.get("artifact_suffix") or ".jar").strip().lower()
        if not suffix.startswith("."):
            suffix = f".{suffix}"

        chunk_raw = raw.get("digest_chunk_size")
        try:
            chunk_size = int(chunk_raw) if chunk_raw not in (None, "") else DEFAULT_CHUNK_SIZE
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"digest_chunk_size must be an integer, got {chunk_raw!r}") from exc
        if chunk_size <= 0:
            raise ConfigError("digest_chunk_size must be positive")

        return cls(
            working_dir=working_dir,
            classpath=classpath,
            artifact_suffix=suffix,
            reserved_names=reserved,
            digest_chunk_size=chunk_size,
        )


def load_checker_config(workspace_root: Path) -> CheckerConfig:
    config_path = workspace_root / "config" / "config.toml"
    if not config_path.exists():
        return CheckerConfig.from_dict({}, base_dir=workspace_root)
    try:
        payload = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return CheckerConfig.from_dict({}, base_dir=workspace_root)
    section = payload.get(CONFIG_SECTION)
    if not isinstance(section, dict):
        section = {}
    return CheckerConfig.from_dict(section, base_dir=workspace_root)
