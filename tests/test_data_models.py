from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from archive_walker.data_models import FileInfo, FileType, WalkEntry


@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        (stat.S_IFREG | 0o644, FileType.REGULAR),
        (stat.S_IFDIR | 0o755, FileType.DIRECTORY),
        (stat.S_IFLNK | 0o777, FileType.SYMLINK),
        (stat.S_IFCHR | 0o666, FileType.CHAR_DEVICE),
        (stat.S_IFBLK | 0o660, FileType.BLOCK_DEVICE),
        (stat.S_IFIFO | 0o600, FileType.FIFO),
        (stat.S_IFSOCK | 0o755, FileType.SOCKET),
        (0, FileType.OTHER),
    ],
)
def test_file_type_from_mode(mode: int, expected: FileType) -> None:
    assert FileType.from_mode(mode) is expected


def test_file_info_from_stat(tmp_path: Path) -> None:
    target = tmp_path / "data.bin"
    target.write_bytes(b"12345")

    info = FileInfo.from_stat(target.name, os.lstat(target))

    assert info.name == "data.bin"
    assert info.file_type is FileType.REGULAR
    assert info.size_bytes == 5
    assert stat.S_ISREG(info.mode)
    assert not info.is_dir
    assert not info.is_symlink
    assert info.modified_time_epoch_seconds == pytest.approx(target.stat().st_mtime)


def test_walk_entry_defaults(tmp_path: Path) -> None:
    entry = WalkEntry(rel_path=".", full_path=tmp_path)

    assert entry.ok
    assert entry.file_type is None
    assert entry.link is None


def test_walk_entry_with_error(tmp_path: Path) -> None:
    entry = WalkEntry(rel_path="x", full_path=tmp_path / "x", error=PermissionError(13, "denied"))

    assert not entry.ok
