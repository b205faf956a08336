"""Parsing of dependency manifests into validated entries.

A manifest is a flat mapping of dotted keys grouped by dependency name::

    lib.version=2
    lib.filename=lib-2.jar
    lib.sha256=<64 hex chars>
    lib.size=1000
    lib.key=CHK@...
    lib.filename-regex=lib-[0-9.]+\\.jar

``version``, ``filename``, ``sha256`` and ``size`` are required. ``key`` (the
content locator) and ``filename-regex`` (the match pattern) are optional: a bad
value for either is logged and treated as absent.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Mapping
from urllib.parse import urlsplit

import yaml

from .errors import ManifestError
from .properties import parse_properties

logger = logging.getLogger(__name__)

SHA256_LENGTH = 32
_LOCATOR_KEY_RE = re.compile(r"^(?:freenet:)?(?:CHK|SSK|USK|KSK)@\S+$")
_YAML_SUFFIXES = {".yml", ".yaml"}
_HEX_RE = re.compile(r"[0-9a-fA-F]*")
_SIZE_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class ManifestEntry:
    name: str
    version: str
    filename: Path
    sha256: bytes
    size: int
    pattern: re.Pattern[str] | None = None
    locator: str | None = None

    def matches(self, filename: str) -> bool:
        return self.pattern is not None and self.pattern.fullmatch(filename) is not None


def load_manifest(path: Path) -> dict[str, str]:
    """Read a manifest file, either properties text or a YAML document."""

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in _YAML_SUFFIXES:
        # BaseLoader keeps every scalar as written, so "1.10" stays "1.10".
        return _flatten_yaml(yaml.load(text, Loader=yaml.BaseLoader), source=path)
    try:
        return parse_properties(text)
    except ValueError as exc:
        raise ManifestError(f"unreadable manifest {path}: {exc}") from exc


def _flatten_yaml(payload: Any, *, source: Path) -> dict[str, str]:
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ManifestError(f"manifest {source} must be a mapping of dependency names")
    flat: dict[str, str] = {}
    for name, fields in payload.items():
        if not isinstance(fields, Mapping):
            raise ManifestError(f"manifest {source}: entry {name!r} must be a mapping", entry=str(name))
        for field_name, value in fields.items():
            if value is None:
                continue
            flat[f"{name}.{field_name}"] = str(value)
    return flat


def iter_entry_names(manifest: Mapping[str, str]) -> Iterator[str]:
    """Yield each dependency name once, in the order its first key appears."""

    seen: set[str] = set()
    for key in manifest:
        if "." not in key:
            continue
        name = key.split(".", 1)[0]
        if name in seen:
            continue
        seen.add(name)
        yield name


def parse_sha256(value: str | None, *, entry: str) -> bytes:
    if value is None:
        raise ManifestError(f"no sha256 for {entry}", entry=entry, field="sha256")
    text = value.strip()
    if not _HEX_RE.fullmatch(text) or len(text) % 2:
        raise ManifestError(f"bogus sha256 for {entry}: {value!r}", entry=entry, field="sha256")
    digest = bytes.fromhex(text)
    if len(digest) != SHA256_LENGTH:
        raise ManifestError(
            f"sha256 for {entry} has {len(digest)} bytes, expected {SHA256_LENGTH}",
            entry=entry,
            field="sha256",
        )
    return digest


def parse_size(value: str | None, *, entry: str) -> int:
    text = (value or "").strip()
    if not _SIZE_RE.fullmatch(text):
        raise ManifestError(f"broken size for {entry}: {value!r}", entry=entry, field="size")
    return int(text)


def parse_locator(value: str | None) -> str | None:
    """Return the normalized content locator, or None if ``value`` is not one."""

    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if _LOCATOR_KEY_RE.match(text):
        return text
    parts = urlsplit(text)
    if parts.scheme in {"http", "https"} and parts.netloc:
        return text
    return None


def compile_pattern(value: str | None) -> re.Pattern[str] | None:
    if value is None:
        return None
    try:
        return re.compile(value)
    except re.error:
        return None


def parse_manifest_entry(manifest: Mapping[str, str], name: str, *, strict: bool = False) -> ManifestEntry:
    """Build the entry for dependency ``name``.

    Raises ManifestError if a required field is missing or malformed. With
    ``strict`` the locator and match pattern are required too.
    """

    version = (manifest.get(f"{name}.version") or "").strip()
    if not version:
        raise ManifestError(f"missing version for {name}", entry=name, field="version")
    filename = (manifest.get(f"{name}.filename") or "").strip()
    if not filename:
        raise ManifestError(f"missing filename for {name}", entry=name, field="filename")
    if Path(filename).is_absolute() or ".." in Path(filename).parts:
        raise ManifestError(
            f"filename for {name} must be relative to the working directory: {filename!r}",
            entry=name,
            field="filename",
        )

    raw_key = manifest.get(f"{name}.key")
    locator = parse_locator(raw_key)
    if locator is None:
        if raw_key is None:
            message = f"no {name}.key in manifest, cannot fetch {name}"
        else:
            message = f"unable to parse content locator for {name}: {raw_key!r}"
        if strict:
            raise ManifestError(message, entry=name, field="key")
        logger.warning(message)

    raw_regex = manifest.get(f"{name}.filename-regex")
    pattern = compile_pattern(raw_regex)
    if pattern is None:
        if raw_regex is None:
            message = (
                f"no {name}.filename-regex in manifest, old versions of {name} cannot be "
                "recognized or cleaned up"
            )
        else:
            message = f"bogus pattern for {name}: {raw_regex!r}"
        if strict:
            raise ManifestError(message, entry=name, field="filename-regex")
        logger.warning(message)

    sha256 = parse_sha256(manifest.get(f"{name}.sha256"), entry=name)
    size = parse_size(manifest.get(f"{name}.size"), entry=name)
    return ManifestEntry(
        name=name,
        version=version,
        filename=Path(filename),
        sha256=sha256,
        size=size,
        pattern=pattern,
        locator=locator,
    )
