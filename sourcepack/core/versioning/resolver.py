"""
Read the host project's declared version from its build configuration.

The declaration is the first line containing the marker token, e.g.

    project(Kuzu VERSION 0.0.8 LANGUAGES CXX C)
    set(KUZU VERSION 1.2.3)

and the version is the third whitespace-delimited field. Later matching lines
are ignored. The marker is matched case-sensitively unless
version_marker_ignore_case is set, so `project(Kuzu VERSION ...)` matches the
default marker and `set(KUZU VERSION ...)` needs `KUZU VERSION` or ignore_case.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..errors import VersionResolutionError
from ..settings import PackagingConfig

_log = logging.getLogger("sourcepack.version")


def _version_token(line: str) -> str:
    fields = line.split()
    if len(fields) < 3:
        raise VersionResolutionError(f"malformed version declaration: {line.strip()!r}")
    # a one-line CMake call closes on the version itself: set(X VERSION 1.2.3)
    token = fields[2].strip().rstrip(")")
    if not token:
        raise VersionResolutionError(f"empty version in declaration: {line.strip()!r}")
    return token


def find_version(text: str, marker: str, *, ignore_case: bool = False) -> Optional[str]:
    """Return the version from the first line containing marker, or None."""
    needle = marker.lower() if ignore_case else marker
    for line in text.splitlines():
        haystack = line.lower() if ignore_case else line
        if needle in haystack:
            return _version_token(line)
    return None


def resolve_version(config: PackagingConfig) -> Optional[str]:
    path = config.build_config_path
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise VersionResolutionError(f"cannot read build configuration {path}: {exc}") from exc

    version = find_version(text, config.version_marker, ignore_case=config.version_marker_ignore_case)
    if version is None:
        _log.warning("No %r line found in %s; manifest version left unchanged", config.version_marker, path)
        return None

    _log.info("Found version string from %s: %s", path.name, version)
    return version
