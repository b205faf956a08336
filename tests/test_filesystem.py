from __future__ import annotations

import re
from pathlib import Path

import pytest

from depgate_core.errors import ManifestError
from depgate_core.filesystem import LocalFiles, find_in_classpath, list_candidates


def test_list_candidates_filters_suffix_and_reserved(tmp_path: Path) -> None:
    for name in ("lib-1.jar", "LIB-2.JAR", "freenet.jar", "Freenet.jar.new", "notes.txt", "lib-3.jar.bak"):
        (tmp_path / name).write_bytes(b"x")
    (tmp_path / "dir.jar").mkdir()
    found = list_candidates(tmp_path, ".jar", ("freenet.jar", "freenet.jar.new"))
    assert [path.name for path in found] == ["LIB-2.JAR", "lib-1.jar"]


def test_list_candidates_missing_directory(tmp_path: Path) -> None:
    assert list_candidates(tmp_path / "absent", ".jar", ()) == []


def test_find_in_classpath_returns_first_full_match() -> None:
    pattern = re.compile(r"lib-[0-9]+\.jar")
    classpath = ["/opt/freenet.jar", "/opt/lib-1.jar.old", "/opt/lib-1.jar", "/opt/lib-2.jar"]
    assert find_in_classpath(pattern, classpath) == Path("/opt/lib-1.jar")
    assert find_in_classpath(None, classpath) is None
    assert find_in_classpath(re.compile("other.jar"), classpath) is None


def test_local_files_resolves_relative_paths(tmp_path: Path) -> None:
    files = LocalFiles(root=tmp_path, classpath=("lib-1.jar", "/abs/other-1.jar"))
    assert files.resolve(Path("lib-2.jar")) == tmp_path / "lib-2.jar"
    assert files.resolve(Path("/abs/lib-2.jar")) == Path("/abs/lib-2.jar")
    assert files.in_use(re.compile(r"lib-\d\.jar")) == tmp_path / "lib-1.jar"
    assert files.in_use(re.compile(r"other-\d\.jar")) == Path("/abs/other-1.jar")


def test_target_path_stays_inside_root(tmp_path: Path) -> None:
    root = tmp_path / "node"
    (root / "libs").mkdir(parents=True)
    files = LocalFiles(root=root)
    assert files.target_path(Path("lib-2.jar")) == root / "lib-2.jar"
    assert files.target_path(Path("libs/lib-2.jar")) == root / "libs" / "lib-2.jar"

    for bad in ("../precious.dat", "libs/../../precious.dat", str(tmp_path / "precious.dat"), "."):
        with pytest.raises(ManifestError) as excinfo:
            files.target_path(Path(bad))
        assert excinfo.value.field == "filename"


def test_target_path_rejects_symlink_escape(tmp_path: Path) -> None:
    root = tmp_path / "node"
    outside = tmp_path / "outside"
    root.mkdir()
    outside.mkdir()
    (root / "link").symlink_to(outside, target_is_directory=True)
    with pytest.raises(ManifestError):
        LocalFiles(root=root).target_path(Path("link/precious.dat"))
