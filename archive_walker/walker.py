"""
Streaming directory-tree walker.

This module enumerates a tree under a root path and streams one ``WalkEntry``
per filesystem object to the caller. It performs no writes and never reads
file contents.

Policy
------
- The root is resolved synchronously, following symlinks at the root only. A
  missing or unstatable root is the only error raised to the caller.
- A non-directory root yields exactly one entry named after the file.
- Traversal is pre-order and depth-first. Siblings are sorted by name.
- Symlinks below the root are reported as symlinks and never followed.
- A failure on one entry is attached to that entry and the walk continues.
- ``skip_dir_patterns`` and ``skip_pseudo_fs`` prune traversal.
  ``fnmatch_patterns`` and ``file_types`` only suppress emission.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from archive_walker.context import WalkContext
from archive_walker.data_models import FileInfo, WalkEntry
from archive_walker.errors import RootResolutionError
from archive_walker.matching import SEPARATOR, match_any
from archive_walker.options import PSEUDO_FS_DIRECTORY_NAMES, WalkerOption, WalkerOptions, build_options
from archive_walker.stream import Emit, EntryStream

logger = logging.getLogger(__name__)

ROOT_REL_PATH = "."


@dataclass(frozen=True, slots=True)
class ResolvedRoot:
    """
    A walk root after symlink resolution.

    Attributes
    ----------
    path:
        Absolute path with every symlink resolved.
    info:
        Metadata of the resolved target.
    """

    path: Path
    info: FileInfo


def resolve_root(root_path: str | os.PathLike[str]) -> ResolvedRoot:
    """
    Resolve and stat a walk root, following symlinks.

    Raises
    ------
    RootResolutionError
        If the root does not exist or cannot be stat'ed.
    """
    requested = Path(root_path)
    try:
        resolved = requested.resolve(strict=True)
        stat_result = resolved.stat()
    except (OSError, RuntimeError) as exc:
        # Older interpreters raise RuntimeError for symlink loops.
        raise RootResolutionError(requested, f"Cannot resolve walk root {requested}: {exc!s}") from exc

    return ResolvedRoot(
        path=resolved,
        info=FileInfo.from_stat(resolved.name, stat_result),
    )


def walker(
    ctx: WalkContext,
    root_path: str | os.PathLike[str],
    *options: WalkerOption,
) -> EntryStream:
    """
    Start walking ``root_path`` and return the stream of entries.

    Parameters
    ----------
    ctx:
        Cancellation context. Cancelling it (or letting its deadline pass)
        ends the stream.
    root_path:
        File, directory, or symlink to either.
    options:
        Option callables from ``archive_walker.options``, applied in order.

    Returns
    -------
    EntryStream
        Entries in pre-order. Per-entry failures are delivered inline.

    Raises
    ------
    RootResolutionError
        If the root does not exist or cannot be stat'ed. No stream is created.
    WalkerConfigError
        If the options are invalid.
    """
    opts = build_options(options)
    root = resolve_root(root_path)

    if not root.info.is_dir:
        # Options do not apply to a single file.
        entry = WalkEntry(rel_path=root.path.name, full_path=root.path, file_info=root.info)
        return EntryStream.of([entry], context=ctx)

    tree_walk = TreeWalk(root=root, options=opts)
    return EntryStream(tree_walk.run, context=ctx, buffer_size=opts.buffer_size)


class _WalkStopped(Exception):
    """Raised inside a walk once the stream will accept no more entries."""


@dataclass(slots=True)
class _DirectoryFrame:
    rel_path: str
    depth: int
    children: Iterator[os.DirEntry[str]]


class TreeWalk:
    """
    Single-use traversal of one directory root.

    ``run`` is executed on the stream's producer thread. Options are read-only
    for the lifetime of the walk.
    """

    def __init__(self, *, root: ResolvedRoot, options: WalkerOptions) -> None:
        self._root = root
        self._options = options
        self._max_depth = options.effective_max_depth
        self._emit: Emit | None = None
        self._ctx: WalkContext | None = None

    def run(self, emit: Emit, ctx: WalkContext) -> None:
        """Traverse the tree, sending entries through ``emit``."""
        self._emit = emit
        self._ctx = ctx

        try:
            frames: list[_DirectoryFrame] = []
            root_frame = self._enter_directory(ROOT_REL_PATH, self._root.path, self._root.info, depth=0)
            if root_frame is not None:
                frames.append(root_frame)

            while frames:
                frame = frames[-1]
                child = next(frame.children, None)
                if child is None:
                    frames.pop()
                    continue
                nested = self._visit_child(child, parent_rel_path=frame.rel_path, depth=frame.depth + 1)
                if nested is not None:
                    frames.append(nested)
        except _WalkStopped:
            logger.debug("Walk of %s stopped by cancellation.", self._root.path)

    def _enter_directory(
        self,
        rel_path: str,
        full_path: Path,
        info: FileInfo,
        *,
        depth: int,
    ) -> _DirectoryFrame | None:
        self._check_cancelled()

        descend = self._max_depth is None or depth + 1 <= self._max_depth
        children: list[os.DirEntry[str]] = []
        if descend:
            try:
                with os.scandir(full_path) as iterator:
                    children = sorted(iterator, key=lambda dir_entry: dir_entry.name)
            except OSError as exc:
                logger.debug("Failed to list directory %s: %s", full_path, exc)
                self._send(WalkEntry(rel_path=rel_path, full_path=full_path, file_info=info, error=exc))
                return None

        suppress_root = depth == 0 and self._options.skip_root
        if not suppress_root and self._should_emit(rel_path, info):
            self._send(WalkEntry(rel_path=rel_path, full_path=full_path, file_info=info))

        if not descend:
            return None
        return _DirectoryFrame(rel_path=rel_path, depth=depth, children=iter(children))

    def _visit_child(
        self,
        dir_entry: os.DirEntry[str],
        *,
        parent_rel_path: str,
        depth: int,
    ) -> _DirectoryFrame | None:
        rel_path = _join_rel_path(parent_rel_path, dir_entry.name)
        full_path = Path(dir_entry.path)

        try:
            stat_result = dir_entry.stat(follow_symlinks=False)
        except OSError as exc:
            logger.debug("Failed to stat %s: %s", full_path, exc)
            self._send(WalkEntry(rel_path=rel_path, full_path=full_path, error=exc))
            return None

        info = FileInfo.from_stat(dir_entry.name, stat_result)

        if info.is_dir:
            if self._is_pruned(rel_path, dir_entry.name):
                logger.debug("Pruned directory %s", rel_path)
                return None
            return self._enter_directory(rel_path, full_path, info, depth=depth)

        link: str | None = None
        if info.is_symlink:
            try:
                link = os.readlink(full_path)
            except OSError as exc:
                logger.debug("Failed to read symlink %s: %s", full_path, exc)
                self._send(WalkEntry(rel_path=rel_path, full_path=full_path, file_info=info, error=exc))
                return None

        if self._should_emit(rel_path, info):
            self._send(WalkEntry(rel_path=rel_path, full_path=full_path, file_info=info, link=link))
        return None

    def _should_emit(self, rel_path: str, info: FileInfo) -> bool:
        opts = self._options
        if opts.file_types and info.file_type not in opts.file_types:
            return False
        if opts.fnmatch_patterns and not match_any(opts.fnmatch_patterns, rel_path):
            return False
        return True

    def _is_pruned(self, rel_path: str, name: str) -> bool:
        if self._options.skip_pseudo_fs and name in PSEUDO_FS_DIRECTORY_NAMES:
            return True
        return match_any(self._options.skip_dir_patterns, rel_path)

    def _check_cancelled(self) -> None:
        if self._ctx is not None and self._ctx.cancelled():
            raise _WalkStopped

    def _send(self, entry: WalkEntry) -> None:
        if self._emit is None or not self._emit(entry):
            raise _WalkStopped


def _join_rel_path(parent_rel_path: str, name: str) -> str:
    if parent_rel_path == ROOT_REL_PATH:
        return name
    return f"{parent_rel_path}{SEPARATOR}{name}"
