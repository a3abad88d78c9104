# arcade_arena/paths.py
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

# Simulation output (match CSVs, score plots) lands here unless a path is absolute.
RESULTS_DIR = Path(__file__).resolve().parent / "results"


def ensure_results_dir() -> Path:
    RESULTS_DIR.mkdir(parents=True, exist_ok=True)
    return RESULTS_DIR


def results_path(path_like: Optional[str | Path], *, default_stem: str, suffix: str) -> Path:
    """
    Where a simulation should write its output.

    - No path: ``RESULTS_DIR/<default_stem>_<YYYYmmdd-HHMMSS><suffix>``.
    - Absolute path: used as is.
    - Relative path: anchored inside RESULTS_DIR.
    """
    if path_like is None:
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        return ensure_results_dir() / f"{default_stem}_{stamp}{suffix}"
    path = Path(path_like)
    if path.is_absolute():
        return path
    return ensure_results_dir() / path
