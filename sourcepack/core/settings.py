"""
Packaging configuration.

Every path the pipeline touches is derived from a single ``PackagingConfig``
built once at startup. Defaults match the npm source package layout:

    <host_root>/                      git checkout, CMakeLists.txt, LICENSE, README.md
    <host_root>/tools/nodejs_api/     tool_dir: package.json, build.js
        kuzu-source.tar               snapshot archive (ephemeral)
        kuzu-source/                  extraction directory (ephemeral)
        package/                      staging directory (ephemeral)
        kuzu-source.tar.gz            final artifact

An optional override file in the tool directory may replace any field:

    sourcepack.yaml / sourcepack.json
        version_marker: "Kuzu VERSION"
        artifact_name: kuzu-source.tar.gz
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import ConfigError

_log = logging.getLogger("sourcepack.settings")

CONFIG_FILE_NAMES: List[str] = ["sourcepack.yaml", "sourcepack.yml", "sourcepack.json"]


class PackagingConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    host_root: Path
    tool_dir: Path

    revision: str = "HEAD"
    archive_name: str = "kuzu-source.tar"
    extract_dir_name: str = "kuzu-source"
    staging_dir_name: str = "package"
    artifact_name: str = "kuzu-source.tar.gz"

    build_config_name: str = "CMakeLists.txt"
    version_marker: str = "Kuzu VERSION"
    version_marker_ignore_case: bool = False

    manifest_name: str = "package.json"
    install_hook_name: str = "build.js"
    install_command: str = "node build.js"
    license_name: str = "LICENSE"
    readme_name: str = "README.md"

    # Prometheus text file written after a successful run; off by default
    metrics_textfile: Optional[Path] = None

    @property
    def archive_path(self) -> Path:
        return self.tool_dir / self.archive_name

    @property
    def extract_dir(self) -> Path:
        return self.tool_dir / self.extract_dir_name

    @property
    def staging_dir(self) -> Path:
        return self.tool_dir / self.staging_dir_name

    @property
    def artifact_path(self) -> Path:
        return self.tool_dir / self.artifact_name

    @property
    def build_config_path(self) -> Path:
        return self.host_root / self.build_config_name

    @property
    def staged_manifest_path(self) -> Path:
        return self.staging_dir / self.manifest_name

    def auxiliary_files(self) -> List[Tuple[Path, str]]:
        """(source, name inside staging) for the four files shipped beside the snapshot."""
        return [
            (self.tool_dir / self.manifest_name, self.manifest_name),
            (self.tool_dir / self.install_hook_name, self.install_hook_name),
            (self.host_root / self.license_name, self.license_name),
            (self.host_root / self.readme_name, self.readme_name),
        ]


def find_config_file(tool_dir: Path) -> Optional[Path]:
    for name in CONFIG_FILE_NAMES:
        candidate = tool_dir / name
        if candidate.is_file():
            return candidate
    return None


def load_config_overrides(path: Optional[Path]) -> Dict[str, Any]:
    """
    Load field overrides from a YAML or JSON file.

    A missing file yields no overrides. A file that cannot be read or parsed,
    or that is not a mapping, raises ConfigError.
    """
    if path is None or not path.exists():
        return {}

    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc

    # JSON first; anything else goes through YAML
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"config file {path} is neither JSON nor YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must be a mapping, got {type(data).__name__}")

    _log.info("Loaded %d config overrides from %s", len(data), path)
    return data


def build_config(
    tool_dir: Optional[Path] = None,
    *,
    host_root: Optional[Path] = None,
    config_file: Optional[Path] = None,
) -> PackagingConfig:
    tool_dir = (tool_dir or Path.cwd()).resolve()
    if config_file is None:
        config_file = find_config_file(tool_dir)

    if host_root is None:
        if len(tool_dir.parents) < 2:
            raise ConfigError(f"cannot derive host root from tool directory {tool_dir}")
        host_root = tool_dir.parents[1]

    fields: Dict[str, Any] = {"tool_dir": tool_dir, "host_root": host_root.resolve()}
    overrides = load_config_overrides(config_file)
    for key in ("tool_dir", "host_root", "metrics_textfile"):
        # relative override paths are anchored at the tool directory
        if overrides.get(key) is not None:
            overrides[key] = (tool_dir / Path(str(overrides[key]))).resolve()
    fields.update(overrides)

    try:
        return PackagingConfig(**fields)
    except ValidationError as exc:
        raise ConfigError(f"invalid packaging config: {exc}") from exc
