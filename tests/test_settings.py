from __future__ import annotations

import json

import pytest

from sourcepack.core.errors import ConfigError
from sourcepack.core.settings import build_config, load_config_overrides


def test_default_paths_follow_tool_dir(tmp_path):
    tool_dir = tmp_path / "host" / "tools" / "nodejs_api"
    tool_dir.mkdir(parents=True)
    cfg = build_config(tool_dir)

    assert cfg.host_root == (tmp_path / "host").resolve()
    assert cfg.archive_path == tool_dir.resolve() / "kuzu-source.tar"
    assert cfg.staging_dir == tool_dir.resolve() / "package"
    assert cfg.artifact_path == tool_dir.resolve() / "kuzu-source.tar.gz"
    assert cfg.build_config_path == (tmp_path / "host").resolve() / "CMakeLists.txt"
    assert [name for _, name in cfg.auxiliary_files()] == ["package.json", "build.js", "LICENSE", "README.md"]


def test_config_is_immutable(tmp_path):
    tool_dir = tmp_path / "host" / "tools" / "nodejs_api"
    tool_dir.mkdir(parents=True)
    cfg = build_config(tool_dir)
    with pytest.raises(Exception):
        cfg.revision = "main"


def test_yaml_override_file(tmp_path):
    tool_dir = tmp_path / "host" / "tools" / "nodejs_api"
    tool_dir.mkdir(parents=True)
    (tool_dir / "sourcepack.yaml").write_text(
        "version_marker: MYLIB VERSION\nartifact_name: mylib-source.tar.gz\n", encoding="utf-8"
    )
    cfg = build_config(tool_dir)
    assert cfg.version_marker == "MYLIB VERSION"
    assert cfg.artifact_path.name == "mylib-source.tar.gz"


def test_json_override_with_relative_host_root(tmp_path):
    tool_dir = tmp_path / "pkg"
    tool_dir.mkdir()
    (tmp_path / "elsewhere").mkdir()
    (tool_dir / "sourcepack.json").write_text(json.dumps({"host_root": "../elsewhere"}), encoding="utf-8")
    cfg = build_config(tool_dir, host_root=tmp_path)
    assert cfg.host_root == (tmp_path / "elsewhere").resolve()


def test_load_returns_empty_when_file_missing(tmp_path):
    assert load_config_overrides(tmp_path / "missing.yaml") == {}
    assert load_config_overrides(None) == {}


def test_malformed_override_file_is_fatal(tmp_path):
    f = tmp_path / "bad.yaml"
    f.write_text("this: is: not: valid: yaml:\n  {{{{", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config_overrides(f)


def test_non_mapping_override_file_is_fatal(tmp_path):
    f = tmp_path / "list.json"
    f.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config_overrides(f)


def test_unknown_field_is_rejected(tmp_path):
    tool_dir = tmp_path / "host" / "tools" / "nodejs_api"
    tool_dir.mkdir(parents=True)
    (tool_dir / "sourcepack.yaml").write_text("artefact_name: typo.tar.gz\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        build_config(tool_dir)


def test_metrics_textfile_off_by_default(tmp_path):
    tool_dir = tmp_path / "repo" / "tools" / "nodejs_api"
    tool_dir.mkdir(parents=True)
    assert build_config(tool_dir).metrics_textfile is None


def test_relative_metrics_textfile_is_anchored_at_tool_dir(tmp_path):
    tool_dir = tmp_path / "repo" / "tools" / "nodejs_api"
    tool_dir.mkdir(parents=True)
    (tool_dir / "sourcepack.yaml").write_text(
        "metrics_textfile: out/sourcepack.prom\nversion_marker_ignore_case: true\n", encoding="utf-8"
    )

    cfg = build_config(tool_dir)

    assert cfg.metrics_textfile == (tool_dir / "out" / "sourcepack.prom").resolve()
    assert cfg.version_marker_ignore_case is True
