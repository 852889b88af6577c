from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Dict

from prometheus_client import REGISTRY, write_to_textfile
from prometheus_client import Counter as PromCounter

# Stage outcome counters (in-process)
_STAGES = Counter()

# Named counters (custom)
_NAMED = Counter()

_PROM_STAGE_RUNS = PromCounter(
    "sourcepack_stage_runs_total",
    "Packaging pipeline stage executions",
    ["stage", "status"],
)


def reset_metrics() -> None:
    """
    Test helper: clears all counters to avoid cross-test leakage.
    Safe to call multiple times.
    """
    _STAGES.clear()
    _NAMED.clear()


def inc_stage(stage: str, status: str) -> None:
    """
    Record one stage execution. status is "ok" or "failed".
    """
    s = stage or "unknown"
    _STAGES["stages_total"] += 1
    _STAGES[f"stage_{s}|{status}"] += 1
    _PROM_STAGE_RUNS.labels(stage=s, status=status).inc()


def inc_named(name: str, value: int = 1) -> None:
    """
    Increment a named counter (removals skipped, files staged, etc.).
    """
    if not name:
        return
    _NAMED[name] += int(value)


def snapshot_stages() -> Dict[str, int]:
    return dict(_STAGES)


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)


def format_stage_summary() -> str:
    """One-line "stage=status" summary in execution order, e.g. "tidy=ok export=ok"."""
    parts = []
    for key in _STAGES:
        if not key.startswith("stage_"):
            continue
        stage, _, status = key[len("stage_"):].partition("|")
        parts.append(f"{stage}={status}")
    return " ".join(parts)


def write_metrics(path: Path) -> None:
    """
    Write the Prometheus registry in text exposition format, for the
    node_exporter textfile collector or a CI artifact.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    write_to_textfile(str(path), REGISTRY)
