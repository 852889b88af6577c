"""
Best-effort removal of ephemeral pipeline state.

A path that does not exist is the expected case and counts as success. Any
other failure is logged and swallowed: stale state must never block the
next run.
"""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List

from .observability.metrics import inc_named
from .settings import PackagingConfig

_log = logging.getLogger("sourcepack.cleanup")


def remove_path(path: Path) -> bool:
    """Remove a file or directory tree. Returns True if something was removed."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        _log.warning("Could not remove %s: %s", path, exc)
        inc_named("cleanup_failures")
        return False

    _log.debug("Removed %s", path)
    inc_named("cleanup_removed")
    return True


def _ephemeral_paths(config: PackagingConfig) -> List[Path]:
    return [config.archive_path, config.extract_dir, config.staging_dir]


def tidy_stale_state(config: PackagingConfig) -> List[Path]:
    """Remove leftovers of an earlier aborted run. Returns the paths removed."""
    removed = [p for p in _ephemeral_paths(config) if remove_path(p)]
    if removed:
        _log.info("Removed stale state from a previous run: %s", ", ".join(p.name for p in removed))
    return removed


def cleanup_after_success(config: PackagingConfig) -> None:
    for p in _ephemeral_paths(config):
        remove_path(p)
