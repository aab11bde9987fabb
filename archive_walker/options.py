"""
Walker configuration.

Options are built by folding an ordered list of option callables over the
defaults. Each ``with_*`` function returns such a callable. The resulting
``WalkerOptions`` is frozen and is never changed once a walk starts.

Examples
--------
>>> opts = build_options([with_skip_root(), with_fnmatch_patterns("dev/*", "lib")])
>>> opts.fnmatch_patterns
('dev/*', 'lib')
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Iterable

from archive_walker.data_models import FileType
from archive_walker.errors import WalkerConfigError
from archive_walker.matching import validate_pattern

DEFAULT_BUFFER_SIZE = 32

# Directory names of well-known pseudo filesystems, pruned at any depth.
PSEUDO_FS_DIRECTORY_NAMES: frozenset[str] = frozenset(
    {
        "proc",
        "sys",
        "dev",
        "run",
    }
)


@dataclass(frozen=True, slots=True)
class WalkerOptions:
    """
    Configuration for a single walk.

    Attributes
    ----------
    skip_root:
        Do not emit the root directory's own entry. Its children are still emitted.
    max_recurse_depth:
        Deepest level emitted or descended into. Negative means unlimited.
        Zero behaves exactly like one (see ``effective_max_depth``).
    fnmatch_patterns:
        When non-empty, only entries whose relative path matches one of these
        patterns are emitted. Traversal is not affected.
    skip_dir_patterns:
        Directories whose relative path matches one of these patterns are
        neither emitted nor descended into.
    skip_pseudo_fs:
        Prune directories named in ``PSEUDO_FS_DIRECTORY_NAMES`` at any depth.
    file_types:
        When non-empty, only entries of these types are emitted. Directories
        are still descended into.
    buffer_size:
        Number of entries the stream holds before the producer blocks.
    """

    skip_root: bool = False
    max_recurse_depth: int = -1
    fnmatch_patterns: tuple[str, ...] = ()
    skip_dir_patterns: tuple[str, ...] = ()
    skip_pseudo_fs: bool = False
    file_types: frozenset[FileType] = frozenset()
    buffer_size: int = DEFAULT_BUFFER_SIZE

    @property
    def effective_max_depth(self) -> int | None:
        """
        Depth limit actually applied, or None for unlimited.

        Zero is clamped to one rather than meaning "root only". Downstream
        callers rely on this, so it is kept as is.
        """
        if self.max_recurse_depth < 0:
            return None
        return max(self.max_recurse_depth, 1)


WalkerOption = Callable[[WalkerOptions], WalkerOptions]


def build_options(options: Iterable[WalkerOption] = ()) -> WalkerOptions:
    """
    Fold option callables over the defaults, in order.

    Raises
    ------
    WalkerConfigError
        If an option is not callable or does not produce ``WalkerOptions``.
    """
    result = WalkerOptions()
    for option in options:
        if not callable(option):
            raise WalkerConfigError(f"Walker option must be callable, got {option!r}.")
        result = option(result)
        if not isinstance(result, WalkerOptions):
            raise WalkerConfigError(f"Walker option {option!r} did not return WalkerOptions.")
    return result


def with_skip_root() -> WalkerOption:
    """Suppress the root directory's own entry."""

    def _apply(opts: WalkerOptions) -> WalkerOptions:
        return replace(opts, skip_root=True)

    return _apply


def with_max_recurse_depth(max_depth: int) -> WalkerOption:
    """Limit the depth of emitted and traversed entries."""
    if isinstance(max_depth, bool) or not isinstance(max_depth, int):
        raise WalkerConfigError(f"max_depth must be an int, got {max_depth!r}.")

    def _apply(opts: WalkerOptions) -> WalkerOptions:
        return replace(opts, max_recurse_depth=max_depth)

    return _apply


def with_fnmatch_patterns(*patterns: str) -> WalkerOption:
    """Emit only entries whose relative path matches one of ``patterns``."""
    validated = tuple(validate_pattern(pattern) for pattern in patterns)

    def _apply(opts: WalkerOptions) -> WalkerOptions:
        return replace(opts, fnmatch_patterns=_extend_unique(opts.fnmatch_patterns, validated))

    return _apply


def with_skip_dir_patterns(*patterns: str) -> WalkerOption:
    """Prune directories whose relative path matches one of ``patterns``."""
    validated = tuple(validate_pattern(pattern) for pattern in patterns)

    def _apply(opts: WalkerOptions) -> WalkerOptions:
        return replace(opts, skip_dir_patterns=_extend_unique(opts.skip_dir_patterns, validated))

    return _apply


def with_skip_pseudo_fs() -> WalkerOption:
    """Prune pseudo-filesystem directories (proc, sys, dev, run)."""

    def _apply(opts: WalkerOptions) -> WalkerOptions:
        return replace(opts, skip_pseudo_fs=True)

    return _apply


def with_file_types(*file_types: FileType) -> WalkerOption:
    """Emit only entries of the given types."""
    for file_type in file_types:
        if not isinstance(file_type, FileType):
            raise WalkerConfigError(f"Unknown file type: {file_type!r}")
    requested = frozenset(file_types)

    def _apply(opts: WalkerOptions) -> WalkerOptions:
        return replace(opts, file_types=opts.file_types | requested)

    return _apply


def with_buffer_size(size: int) -> WalkerOption:
    """Set how many entries the stream buffers before the producer blocks."""
    if isinstance(size, bool) or not isinstance(size, int) or size < 1:
        raise WalkerConfigError(f"buffer_size must be a positive int, got {size!r}.")

    def _apply(opts: WalkerOptions) -> WalkerOptions:
        return replace(opts, buffer_size=size)

    return _apply


def _extend_unique(existing: tuple[str, ...], extra: tuple[str, ...]) -> tuple[str, ...]:
    merged = list(existing)
    for item in extra:
        if item not in merged:
            merged.append(item)
    return tuple(merged)
