from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from sourcepack.core.errors import PackagingError
from sourcepack.core.pipeline import run_pipeline
from sourcepack.core.settings import build_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_log = logging.getLogger("sourcepack")


def configure_logging(level: int = logging.INFO) -> None:
    # handlers are attached once per process
    if _log.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    _log.addHandler(handler)
    _log.setLevel(level)


def main(tool_dir: Optional[Path] = None) -> int:
    configure_logging()
    try:
        config = build_config(tool_dir)
        run_pipeline(config)
    except PackagingError as exc:
        _log.error("Packaging failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
