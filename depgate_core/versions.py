"""Embedded artifact versions and version ordering."""

from __future__ import annotations

import logging
import re
import zipfile
from pathlib import Path

logger = logging.getLogger(__name__)

MANIFEST_ENTRY = "META-INF/MANIFEST.MF"
VERSION_ATTRIBUTE = "Implementation-Version"
_COMPONENT_SPLIT_RE = re.compile(r"[._-]")
_NUMERIC_RE = re.compile(r"[0-9]+")


def read_artifact_version(path: Path) -> str | None:
    """Return the ``Implementation-Version`` recorded inside a jar, if any."""

    try:
        with zipfile.ZipFile(path) as archive:
            try:
                raw = archive.read(MANIFEST_ENTRY)
            except KeyError:
                logger.warning("no %s in %s", MANIFEST_ENTRY, path)
                return None
    except (OSError, zipfile.BadZipFile) as exc:
        logger.debug("cannot open %s as an archive: %s", path, exc)
        return None
    version = _manifest_attribute(raw.decode("utf-8", errors="replace"), VERSION_ATTRIBUTE)
    if version is None:
        logger.warning("unable to get dependency version from %s", path)
    return version


def _manifest_attribute(text: str, attribute: str) -> str | None:
    wanted = attribute.lower()
    current: list[str] = []
    for line in text.splitlines():
        if line.startswith(" ") and current:
            current.append(line[1:])
            continue
        found = _attribute_value(current, wanted)
        if found is not None:
            return found
        current = [line] if line else []
    return _attribute_value(current, wanted)


def _attribute_value(parts: list[str], wanted: str) -> str | None:
    if not parts:
        return None
    header = "".join(parts)
    name, sep, value = header.partition(":")
    if not sep or name.strip().lower() != wanted:
        return None
    value = value.strip()
    return value or None


def compare_versions(left: str | None, right: str | None) -> int:
    """Three-way comparison of dotted version strings. ``None`` is older than anything."""

    if left == right:
        return 0
    if left is None:
        return -1
    if right is None:
        return 1
    left_parts = _COMPONENT_SPLIT_RE.split(left.strip())
    right_parts = _COMPONENT_SPLIT_RE.split(right.strip())
    for a, b in zip(left_parts, right_parts):
        if a == b:
            continue
        if _NUMERIC_RE.fullmatch(a) and _NUMERIC_RE.fullmatch(b):
            return -1 if int(a) < int(b) else 1
        return -1 if a < b else 1
    if len(left_parts) == len(right_parts):
        return 0
    return -1 if len(left_parts) < len(right_parts) else 1
