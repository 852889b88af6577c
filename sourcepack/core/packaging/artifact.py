from __future__ import annotations

import hashlib
import logging
import tarfile
from pathlib import Path

from ..cleanup import remove_path
from ..errors import ArtifactError

_log = logging.getLogger("sourcepack.artifact")


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as fp:
        for chunk in iter(lambda: fp.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def _tarinfo_filter(ti: tarfile.TarInfo) -> tarfile.TarInfo:
    # normalized ownership; mtimes and modes are kept
    ti.uid = 0
    ti.gid = 0
    ti.uname = ""
    ti.gname = ""
    return ti


def build_artifact(staging_dir: Path, artifact_path: Path) -> Path:
    """
    Compress staging_dir into a gzip tar at artifact_path.

    Member paths are relative to the staging directory's parent, so the
    archive unpacks into a single top-level directory named after it.
    """
    if not staging_dir.is_dir():
        raise ArtifactError(f"staging directory missing: {staging_dir}")

    try:
        # tarfile.add walks directories in sorted order
        with tarfile.open(artifact_path, "w:gz", format=tarfile.PAX_FORMAT) as tar:
            tar.add(staging_dir, arcname=staging_dir.name, filter=_tarinfo_filter)
    except (tarfile.TarError, OSError) as exc:
        remove_path(artifact_path)
        raise ArtifactError(f"cannot write artifact {artifact_path}: {exc}") from exc

    _log.info("Wrote %s", artifact_path)
    return artifact_path
