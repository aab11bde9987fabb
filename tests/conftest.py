"""
Shared fixtures for walker tests.

The sample tree mirrors a small root filesystem:

    dev/random
    etc/certs/ca.crt
    etc/hostname
    lib/dynalib.so
    proc/1/exe -> ../../usr/bin/cp   (symlink)
    proc/stat
    usr/bin/cp
    usr/bin/mv -> /usr/bin/cp        (symlink, absolute raw target)
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest


def _symlinks_supported(tmp_path: Path) -> bool:
    probe = tmp_path / ".symlink_probe"
    try:
        os.symlink("target", probe)
    except (OSError, NotImplementedError):
        return False
    probe.unlink()
    return True


@pytest.fixture()
def sample_tree(tmp_path: Path) -> Path:
    """Build the sample tree under ``tmp_path / "root"`` and return its path."""
    if not _symlinks_supported(tmp_path):
        pytest.skip("Symlinks are not supported on this platform/filesystem")

    root = tmp_path / "root"
    for directory in ("dev", "etc/certs", "lib", "proc/1", "usr/bin"):
        (root / directory).mkdir(parents=True)

    for file_path in ("dev/random", "etc/certs/ca.crt", "etc/hostname", "lib/dynalib.so", "proc/stat"):
        (root / file_path).write_text(file_path, encoding="utf-8")
    (root / "usr/bin/cp").write_bytes(b"\x7fELF")

    os.symlink("../../usr/bin/cp", root / "proc/1/exe")
    os.symlink("/usr/bin/cp", root / "usr/bin/mv")

    return root
