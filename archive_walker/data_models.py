"""Data models for archive_walker.

This module defines the typed representation of what a walk produces: one
``WalkEntry`` per filesystem object, carrying its metadata (``FileInfo``) and,
when collecting that metadata failed, the error that occurred.

The models are standard-library-only (dataclasses) and immutable. Once an entry
has been read from a stream it belongs to the consumer.
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class FileType(str, Enum):
    """Type tags for filesystem entries, derived from ``lstat`` mode bits."""

    REGULAR = "regular"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    CHAR_DEVICE = "char_device"
    BLOCK_DEVICE = "block_device"
    FIFO = "fifo"
    SOCKET = "socket"
    OTHER = "other"

    @classmethod
    def from_mode(cls, mode: int) -> FileType:
        """Classify a ``st_mode`` value.

        Parameters
        ----------
        mode
            Mode bits as returned by ``os.lstat`` or ``os.stat``.

        Returns
        -------
        FileType
            The matching tag, or ``OTHER`` for types not named here.
        """

        if stat.S_ISDIR(mode):
            return cls.DIRECTORY
        if stat.S_ISLNK(mode):
            return cls.SYMLINK
        if stat.S_ISREG(mode):
            return cls.REGULAR
        if stat.S_ISCHR(mode):
            return cls.CHAR_DEVICE
        if stat.S_ISBLK(mode):
            return cls.BLOCK_DEVICE
        if stat.S_ISFIFO(mode):
            return cls.FIFO
        if stat.S_ISSOCK(mode):
            return cls.SOCKET
        return cls.OTHER


@dataclass(frozen=True, slots=True)
class FileInfo:
    """Standard metadata for a filesystem entry.

    Attributes
    ----------
    name:
        Base name of the entry.
    file_type:
        Type tag of the entry itself (symlinks are not followed).
    mode:
        Full ``st_mode`` value, type and permission bits.
    size_bytes:
        Size in bytes as reported by the filesystem.
    modified_time_epoch_seconds:
        Modification time as seconds since epoch.
    """

    name: str
    file_type: FileType
    mode: int
    size_bytes: int
    modified_time_epoch_seconds: float

    @classmethod
    def from_stat(cls, name: str, stat_result: os.stat_result) -> FileInfo:
        """Build metadata from a stat result."""

        return cls(
            name=name,
            file_type=FileType.from_mode(stat_result.st_mode),
            mode=int(stat_result.st_mode),
            size_bytes=int(stat_result.st_size),
            modified_time_epoch_seconds=float(stat_result.st_mtime),
        )

    @property
    def is_dir(self) -> bool:
        return self.file_type is FileType.DIRECTORY

    @property
    def is_symlink(self) -> bool:
        return self.file_type is FileType.SYMLINK


@dataclass(frozen=True, slots=True)
class WalkEntry:
    """One filesystem object surfaced by a walk.

    Attributes
    ----------
    rel_path:
        Slash-separated path relative to the walk root. The root itself is
        ``"."``. When the root is a single file, this is the file's base name.
    full_path:
        Absolute path of the entry on the filesystem.
    file_info:
        Metadata, or None when it could not be collected.
    link:
        Raw target of a symbolic link (not resolved). None for everything else.
    error:
        The failure that affected this entry, if any. Traversal continues
        regardless of it.
    """

    rel_path: str
    full_path: Path
    file_info: FileInfo | None = None
    link: str | None = None
    error: OSError | None = None

    @property
    def ok(self) -> bool:
        """True when no error is attached to the entry."""

        return self.error is None

    @property
    def file_type(self) -> FileType | None:
        """Type tag of the entry, or None when metadata is missing."""

        if self.file_info is None:
            return None
        return self.file_info.file_type
