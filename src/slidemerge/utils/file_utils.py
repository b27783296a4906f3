"""File I/O and path utilities."""

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


def ensure_directory(path: str | Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")
    with open(path) as f:
        return yaml.safe_load(f) or {}


def default_output_path(target: str | Path, suffix: str = "_merged") -> Path:
    """``<target-dir>/<target-stem><suffix><target-ext>``, e.g. ``deck_merged.pptx``."""
    target = Path(target)
    ext = target.suffix or ".pptx"
    return target.with_name(f"{target.stem}{suffix}{ext}")

