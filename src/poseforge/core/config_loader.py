"""JSON config file loading utilities."""

import json
from pathlib import Path
from typing import Any

from poseforge.constants import SKELETON_DIR


def load_json(path: Path) -> Any:
    """Load and return parsed JSON from a file."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def skeleton_path(name: str) -> Path:
    """Return the path of a built-in scene in assets/skeletons/."""
    if not name.endswith(".json"):
        name = f"{name}.json"
    return SKELETON_DIR / name


def load_skeleton_file(name: str) -> Any:
    """Load a built-in scene description from assets/skeletons/."""
    return load_json(skeleton_path(name))


def list_skeleton_files() -> list[str]:
    """Names (without extension) of every scene in assets/skeletons/."""
    return sorted(p.stem for p in SKELETON_DIR.glob("*.json"))
