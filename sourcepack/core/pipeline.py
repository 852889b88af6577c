"""
Packaging pipeline: tidy -> export -> assemble -> manifest -> package -> cleanup.

Stages run strictly in order. The first exception aborts the run and
propagates unchanged; the staging directory of a failed run is left in place
and removed by the next run's tidy-up.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from .cleanup import cleanup_after_success, tidy_stale_state
from .git_ops.snapshot import export_snapshot, head_commit
from .errors import PackagingError
from .observability.metrics import format_stage_summary, inc_stage, write_metrics
from .packaging.artifact import build_artifact, sha256_file
from .packaging.package_manifest import rewrite_manifest
from .settings import PackagingConfig
from .staging.assembler import assemble_staging
from .versioning import resolve_version

_log = logging.getLogger("sourcepack.pipeline")


@dataclass(frozen=True)
class PipelineResult:
    artifact_path: Path
    version: Optional[str]
    commit: str
    sha256: str
    snapshot_file_count: int


@contextmanager
def _stage(name: str) -> Iterator[None]:
    _log.debug("stage %s: start", name)
    try:
        yield
    except Exception:
        inc_stage(name, "failed")
        raise
    inc_stage(name, "ok")


def run_pipeline(config: PackagingConfig) -> PipelineResult:
    with _stage("tidy"):
        tidy_stale_state(config)

    _log.info("Gathering source code from %s...", config.host_root)
    with _stage("export"):
        commit = head_commit(config.host_root, config.revision)
        archive = export_snapshot(config)

    with _stage("assemble"):
        staged = assemble_staging(config, archive)

    _log.info("Updating %s...", config.manifest_name)
    with _stage("manifest"):
        version = resolve_version(config)
        rewrite_manifest(
            config.staged_manifest_path,
            version=version,
            install_command=config.install_command,
        )

    _log.info("Creating tarball...")
    with _stage("package"):
        artifact = build_artifact(staged.staging_dir, config.artifact_path)
        sha = sha256_file(artifact)
    _log.info("SHA256: %s", sha)

    _log.info("Cleaning up...")
    with _stage("cleanup"):
        cleanup_after_success(config)

    _log.info("Stages: %s", format_stage_summary())
    if config.metrics_textfile is not None:
        try:
            write_metrics(config.metrics_textfile)
        except OSError as exc:
            raise PackagingError(f"cannot write metrics to {config.metrics_textfile}: {exc}") from exc

    _log.info("Done!")
    return PipelineResult(
        artifact_path=artifact,
        version=version,
        commit=commit,
        sha256=sha,
        snapshot_file_count=staged.snapshot_file_count,
    )
