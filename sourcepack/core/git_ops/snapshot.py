from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Tuple

from ..cleanup import remove_path
from ..errors import SnapshotExportError
from ..settings import PackagingConfig

_log = logging.getLogger("sourcepack.snapshot")


# ---------------------------------------------------------------------
# Core git runner
# ---------------------------------------------------------------------

def _run_git(repo_path: Path, args: list[str]) -> Tuple[int, str, str]:
    try:
        p = subprocess.run(
            ["git", "--no-pager", *args],
            cwd=str(repo_path),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            env={**os.environ, "GIT_PAGER": "cat", "PAGER": "cat"},
        )
    except OSError as exc:
        # git missing from PATH, or repo_path is not a directory
        raise SnapshotExportError(f"cannot run git in {repo_path}: {exc}") from exc
    return p.returncode, (p.stdout or "").strip(), (p.stderr or "").strip()


def head_commit(repo_path: Path, ref: str = "HEAD") -> str:
    rc, out, err = _run_git(repo_path, ["rev-parse", "--verify", ref])
    if rc != 0:
        raise SnapshotExportError(f"git rev-parse {ref} failed: {err or out}")
    return out


# ---------------------------------------------------------------------
# Snapshot export
# ---------------------------------------------------------------------

def export_snapshot(config: PackagingConfig) -> Path:
    """
    Write every tracked file at config.revision into an uncompressed tar.

    An archive left by an earlier failed run is overwritten. git may create
    the output file before failing, so a failed export removes it.
    """
    archive = config.archive_path
    archive.parent.mkdir(parents=True, exist_ok=True)

    rc, out, err = _run_git(
        config.host_root,
        ["archive", "--format=tar", f"--output={archive}", config.revision],
    )
    if rc != 0:
        remove_path(archive)
        raise SnapshotExportError(f"git archive failed: {err or out}")

    _log.info("Exported %s of %s to %s", config.revision, config.host_root, archive)
    return archive
