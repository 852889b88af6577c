import json
import subprocess
from pathlib import Path

import pytest

from sourcepack.core.observability.metrics import reset_metrics
from sourcepack.core.settings import build_config

DEFAULT_CMAKE = "cmake_minimum_required(VERSION 3.15)\nproject(Kuzu VERSION 1.2.3 LANGUAGES CXX C)\n"

TEMPLATE_MANIFEST = {
    "name": "kuzu",
    "version": "0.0.0",
    "description": "Node.js API for Kuzu",
    "main": "index.js",
    "scripts": {"test": "mocha test", "install": "node install.js"},
    "license": "MIT",
}


def git(repo: Path, *args: str) -> str:
    p = subprocess.run(
        ["git", "-c", "user.name=sourcepack", "-c", "user.email=sourcepack@example.com", *args],
        cwd=str(repo),
        check=True,
        capture_output=True,
        text=True,
    )
    return p.stdout


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture()
def make_host_repo(tmp_path: Path):
    """
    Builds a committed git repo shaped like the host project:

        CMakeLists.txt, LICENSE, README.md, src/main.cpp,
        tools/nodejs_api/{package.json, build.js}
    """

    def _make(cmake_text: str = DEFAULT_CMAKE, name: str = "host") -> Path:
        repo = tmp_path / name
        tool_dir = repo / "tools" / "nodejs_api"
        tool_dir.mkdir(parents=True)
        (repo / "src").mkdir()

        (repo / "CMakeLists.txt").write_text(cmake_text, encoding="utf-8")
        (repo / "LICENSE").write_text("MIT License\n", encoding="utf-8")
        (repo / "README.md").write_text("# Kuzu\n", encoding="utf-8")
        (repo / "src" / "main.cpp").write_text("int main() { return 0; }\n", encoding="utf-8")
        (tool_dir / "package.json").write_text(json.dumps(TEMPLATE_MANIFEST, indent=2), encoding="utf-8")
        (tool_dir / "build.js").write_text("console.log('building');\n", encoding="utf-8")

        git(repo, "init")
        git(repo, "add", ".")
        git(repo, "commit", "-m", "init")
        return repo

    return _make


@pytest.fixture()
def tmp_repo(make_host_repo):
    return make_host_repo()


@pytest.fixture()
def config(tmp_repo: Path):
    return build_config(tmp_repo / "tools" / "nodejs_api")
