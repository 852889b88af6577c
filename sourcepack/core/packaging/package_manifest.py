from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import ManifestError

_log = logging.getLogger("sourcepack.manifest")


def load_manifest(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ManifestError(f"cannot read manifest {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ManifestError(f"manifest {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestError(f"manifest {path} must be a JSON object, got {type(data).__name__}")
    return data


def write_manifest(path: Path, manifest: Dict[str, Any]) -> None:
    # key order is kept as loaded
    text = json.dumps(manifest, indent=2, ensure_ascii=False) + "\n"
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"cannot write manifest {path}: {exc}") from exc


def apply_release_fields(
    manifest: Dict[str, Any],
    *,
    version: Optional[str],
    install_command: str,
) -> Dict[str, Any]:
    """
    Set version (only when one was resolved) and scripts.install.

    All other fields pass through untouched.
    """
    if version is not None:
        manifest["version"] = version

    scripts = manifest.setdefault("scripts", {})
    if not isinstance(scripts, dict):
        raise ManifestError(f"manifest 'scripts' must be an object, got {type(scripts).__name__}")
    scripts["install"] = install_command
    return manifest


def rewrite_manifest(path: Path, *, version: Optional[str], install_command: str) -> Dict[str, Any]:
    manifest = load_manifest(path)
    if version is None:
        _log.warning("Keeping template version %r in %s", manifest.get("version"), path.name)
    apply_release_fields(manifest, version=version, install_command=install_command)
    write_manifest(path, manifest)
    _log.info("Updated %s: version=%s install=%r", path.name, manifest.get("version"), install_command)
    return manifest
