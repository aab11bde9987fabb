"""
Per-entry error isolation.

Listing and stat failures are injected through a fake ``os.scandir`` so these
tests behave the same whether or not they run with root privileges.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Collection, Iterator

import pytest

import archive_walker.walker as walker_module
from archive_walker.context import WalkContext
from archive_walker.data_models import FileType, WalkEntry
from archive_walker.options import with_file_types, with_fnmatch_patterns, with_skip_root
from archive_walker.walker import walker


class _FailingStatEntry:
    """Stands in for an ``os.DirEntry`` whose lstat fails."""

    def __init__(self, real: os.DirEntry[str]) -> None:
        self.name = real.name
        self.path = real.path

    def stat(self, *, follow_symlinks: bool = True) -> os.stat_result:
        raise PermissionError(13, "Permission denied", self.path)


class _FakeScandir:
    def __init__(self, entries: list[Any]) -> None:
        self._entries = entries

    def __enter__(self) -> Iterator[Any]:
        return iter(self._entries)

    def __exit__(self, *exc_info: object) -> None:
        return None


def _install_scandir(
    monkeypatch: pytest.MonkeyPatch,
    *,
    fail_listing: Collection[str] = (),
    fail_stat: Collection[str] = (),
) -> None:
    real_scandir: Callable[..., Any] = os.scandir

    def _fake_scandir(path: Any) -> Any:
        if Path(path).name in fail_listing:
            raise PermissionError(13, "Permission denied", str(path))
        with real_scandir(path) as iterator:
            entries = [
                _FailingStatEntry(entry) if entry.name in fail_stat else entry for entry in iterator
            ]
        return _FakeScandir(entries)

    monkeypatch.setattr(walker_module.os, "scandir", _fake_scandir)


def _walk_all(root: Path, *options: Any) -> list[WalkEntry]:
    return list(walker(WalkContext.background(), root, *options))


def test_unlistable_directory_is_reported_and_walk_continues(
    monkeypatch: pytest.MonkeyPatch, sample_tree: Path
) -> None:
    _install_scandir(monkeypatch, fail_listing={"etc"})

    entries = _walk_all(sample_tree, with_skip_root())
    rel_paths = [entry.rel_path for entry in entries]

    assert rel_paths == [
        "dev",
        "dev/random",
        "etc",
        "lib",
        "lib/dynalib.so",
        "proc",
        "proc/1",
        "proc/1/exe",
        "proc/stat",
        "usr",
        "usr/bin",
        "usr/bin/cp",
        "usr/bin/mv",
    ]

    etc = entries[rel_paths.index("etc")]
    assert isinstance(etc.error, PermissionError)
    assert not etc.ok
    assert etc.file_type is FileType.DIRECTORY
    assert all(entry.ok for entry in entries if entry.rel_path != "etc")


def test_unstatable_child_is_reported_without_metadata(
    monkeypatch: pytest.MonkeyPatch, sample_tree: Path
) -> None:
    _install_scandir(monkeypatch, fail_stat={"hostname"})

    entries = _walk_all(sample_tree)
    by_path = {entry.rel_path: entry for entry in entries}

    hostname = by_path["etc/hostname"]
    assert isinstance(hostname.error, PermissionError)
    assert hostname.file_info is None
    assert hostname.full_path == sample_tree.resolve() / "etc" / "hostname"
    assert "lib/dynalib.so" in by_path
    assert by_path["lib/dynalib.so"].ok


def test_error_entries_bypass_emission_filters(
    monkeypatch: pytest.MonkeyPatch, sample_tree: Path
) -> None:
    _install_scandir(monkeypatch, fail_listing={"certs"}, fail_stat={"stat"})

    entries = _walk_all(
        sample_tree,
        with_file_types(FileType.SYMLINK),
        with_fnmatch_patterns("usr/bin/*"),
    )

    assert [(entry.rel_path, entry.ok) for entry in entries] == [
        ("etc/certs", False),
        ("proc/stat", False),
        ("usr/bin/mv", True),
    ]


def test_unreadable_root_directory_is_reported_inline(
    monkeypatch: pytest.MonkeyPatch, sample_tree: Path
) -> None:
    _install_scandir(monkeypatch, fail_listing={sample_tree.resolve().name})

    entries = _walk_all(sample_tree, with_skip_root())

    assert len(entries) == 1
    assert entries[0].rel_path == "."
    assert isinstance(entries[0].error, PermissionError)


def test_unreadable_symlink_is_reported(monkeypatch: pytest.MonkeyPatch, sample_tree: Path) -> None:
    real_readlink = os.readlink

    def _fake_readlink(path: Any) -> str:
        if Path(path).name == "mv":
            raise OSError(5, "Input/output error", str(path))
        return real_readlink(path)

    monkeypatch.setattr(walker_module.os, "readlink", _fake_readlink)

    entries = _walk_all(sample_tree)
    by_path = {entry.rel_path: entry for entry in entries}

    assert by_path["usr/bin/mv"].link is None
    assert isinstance(by_path["usr/bin/mv"].error, OSError)
    assert by_path["usr/bin/mv"].file_type is FileType.SYMLINK
    assert by_path["proc/1/exe"].link == "../../usr/bin/cp"
