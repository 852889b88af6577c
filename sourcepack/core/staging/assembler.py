"""
Assemble the staging directory that mirrors the shipped package.

Layout after assembly (default names):

    package/
        kuzu-source/      full snapshot tree
        package.json      manifest template (rewritten later)
        build.js          install hook
        LICENSE
        README.md
"""
from __future__ import annotations

import logging
import shutil
import tarfile
from dataclasses import dataclass
from pathlib import Path

from ..cleanup import remove_path
from ..errors import StagingError
from ..observability.metrics import inc_named
from ..settings import PackagingConfig

_log = logging.getLogger("sourcepack.staging")


@dataclass(frozen=True)
class StagedTree:
    staging_dir: Path
    snapshot_root: Path
    snapshot_file_count: int


def extract_snapshot(archive_path: Path, dest: Path) -> int:
    """
    Extract the whole archive into dest. Returns the number of regular files.

    The archive comes from our own git export, so tracked symlinks are kept
    as they are, wherever they point. Member names that are absolute or
    escape dest are still refused.
    """
    if not hasattr(tarfile, "tar_filter"):
        raise StagingError("this Python lacks tarfile extraction filters (need 3.10.12+, 3.11.4+ or 3.12+)")
    try:
        with tarfile.open(archive_path, mode="r:") as tf:
            members = tf.getmembers()
            tf.extractall(dest, filter="tar")
    except (tarfile.TarError, OSError) as exc:
        raise StagingError(f"cannot extract snapshot {archive_path}: {exc}") from exc
    return sum(1 for m in members if m.isfile())


def copy_auxiliary_files(config: PackagingConfig, staging_dir: Path) -> None:
    for src, name in config.auxiliary_files():
        if not src.is_file():
            raise StagingError(f"auxiliary file missing: {src}")
        try:
            shutil.copyfile(src, staging_dir / name)
        except OSError as exc:
            raise StagingError(f"cannot copy {src} into staging: {exc}") from exc


def _fresh_dir(path: Path) -> None:
    remove_path(path)
    try:
        path.mkdir(parents=True)
    except OSError as exc:
        raise StagingError(f"cannot create {path}: {exc}") from exc


def assemble_staging(config: PackagingConfig, archive_path: Path) -> StagedTree:
    extract_dir = config.extract_dir
    staging_dir = config.staging_dir

    _fresh_dir(staging_dir)
    _fresh_dir(extract_dir)

    file_count = extract_snapshot(archive_path, extract_dir)
    # the archive is single-use
    remove_path(archive_path)

    snapshot_root = staging_dir / config.extract_dir_name
    try:
        extract_dir.rename(snapshot_root)
    except OSError as exc:
        raise StagingError(f"cannot move {extract_dir} into {staging_dir}: {exc}") from exc

    copy_auxiliary_files(config, staging_dir)

    inc_named("snapshot_files_staged", file_count)
    _log.info("Staged %d snapshot files in %s", file_count, staging_dir)
    return StagedTree(staging_dir=staging_dir, snapshot_root=snapshot_root, snapshot_file_count=file_count)
