"""Load skinned scenes (bind-pose bones plus optional mesh) from JSON.

Scene format::

    {
      "name": "two_bone",
      "bones": [
        {"name": "root",  "parent": null, "position": [0, 0, 0], "endpoint": [0, 1, 0]},
        {"name": "child", "parent": 0,    "position": [0, 1, 0], "endpoint": [0, 2, 0]}
      ],
      "mesh": {
        "positions": [...], "normals": [...], "indices": [...],
        "skin_indices": [...], "skin_weights": [...]
      }
    }

``parent`` is null or -1 for a root. ``children`` per bone is optional
and checked against the parent links when present. ``mesh`` is optional.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import numpy as np

from poseforge.constants import MAX_SKINNING_BONES
from poseforge.core.config_loader import load_json, skeleton_path
from poseforge.core.mesh import INFLUENCES_PER_VERTEX, SkinnedGeometry, SkinnedMesh
from poseforge.skeleton.bone import BoneRecord
from poseforge.skeleton.skeleton import Skeleton

logger = logging.getLogger(__name__)


class SceneFormatError(ValueError):
    """Scene JSON is structurally invalid."""


def _vector(entry: dict, key: str, where: str) -> list[float]:
    if key not in entry:
        raise SceneFormatError(f"{where}: missing '{key}'")
    value = entry[key]
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise SceneFormatError(f"{where}: '{key}' must be a list of 3 numbers, got {value!r}")
    try:
        return [float(v) for v in value]
    except (TypeError, ValueError) as e:
        raise SceneFormatError(f"{where}: '{key}' has a non-numeric component") from e


def _parent(entry: dict, where: str) -> Optional[int]:
    p = entry.get("parent")
    if p is None or p == -1:
        return None
    if isinstance(p, bool) or not isinstance(p, int):
        raise SceneFormatError(f"{where}: 'parent' must be an integer or null, got {p!r}")
    return p


def parse_bone_records(bones: Any) -> list[BoneRecord]:
    """Convert the ``bones`` array of a scene into BoneRecords."""
    if not isinstance(bones, list) or not bones:
        raise SceneFormatError("Scene must contain a non-empty 'bones' list")

    records = []
    for i, entry in enumerate(bones):
        where = f"bone {i}"
        if not isinstance(entry, dict):
            raise SceneFormatError(f"{where}: expected an object, got {type(entry).__name__}")
        name = str(entry.get("name", f"bone_{i}"))
        where = f"bone {i} ('{name}')"
        children = entry.get("children", [])
        if not isinstance(children, list) or not all(
                isinstance(c, int) and not isinstance(c, bool) for c in children):
            raise SceneFormatError(f"{where}: 'children' must be a list of integers")
        records.append(BoneRecord(
            parent=_parent(entry, where),
            bind_position=_vector(entry, "position", where),
            bind_endpoint=_vector(entry, "endpoint", where),
            children=list(children),
            name=name,
        ))
    return records


def _array(data: dict, key: str, dtype, required: bool = True) -> Optional[np.ndarray]:
    if key not in data:
        if required:
            raise SceneFormatError(f"mesh: missing '{key}'")
        return None
    try:
        return np.asarray(data[key], dtype=dtype).ravel()
    except (TypeError, ValueError) as e:
        raise SceneFormatError(f"mesh: '{key}' is not a numeric array") from e


def parse_geometry(data: dict, bone_count: int) -> SkinnedGeometry:
    """Build SkinnedGeometry from a scene's ``mesh`` object."""
    positions = _array(data, "positions", np.float32)
    if len(positions) % 3:
        raise SceneFormatError("mesh: 'positions' length is not a multiple of 3")
    vertex_count = len(positions) // 3

    normals = _array(data, "normals", np.float32, required=False)
    if normals is None:
        normals = np.zeros_like(positions)
    skin_indices = _array(data, "skin_indices", np.float32)
    skin_weights = _array(data, "skin_weights", np.float32)
    indices = _array(data, "indices", np.uint32, required=False)

    expected = vertex_count * INFLUENCES_PER_VERTEX
    for key, arr in (("skin_indices", skin_indices), ("skin_weights", skin_weights)):
        if len(arr) != expected:
            raise SceneFormatError(f"mesh: '{key}' has {len(arr)} values, expected {expected}")
    if len(normals) != len(positions):
        raise SceneFormatError("mesh: 'normals' and 'positions' differ in length")
    if indices is not None and len(indices) and int(indices.max()) >= vertex_count:
        raise SceneFormatError("mesh: 'indices' reference vertices that do not exist")

    geometry = SkinnedGeometry(
        positions=positions,
        normals=normals,
        skin_indices=skin_indices,
        skin_weights=skin_weights,
        indices=indices,
        vertex_count=vertex_count,
    )
    if geometry.max_bone_index >= bone_count:
        raise SceneFormatError(
            f"mesh: skin references bone {geometry.max_bone_index} but the skeleton "
            f"has {bone_count} bones"
        )
    return geometry


def build_mesh(data: dict, default_name: str = "scene") -> SkinnedMesh:
    """Build a SkinnedMesh from an already-parsed scene dictionary.

    Raises :class:`SceneFormatError` for bad content and
    :class:`~poseforge.skeleton.skeleton.MalformedHierarchy` for a broken
    bone tree.
    """
    if not isinstance(data, dict):
        raise SceneFormatError("Scene root must be a JSON object")
    name = str(data.get("name", default_name))
    skeleton = Skeleton(parse_bone_records(data.get("bones")))

    geometry = None
    if data.get("mesh") is not None:
        geometry = parse_geometry(data["mesh"], len(skeleton))
        if len(skeleton) > MAX_SKINNING_BONES:
            logger.warning(
                "Scene '%s' has %d bones; only %d can be skinned on the GPU, "
                "drawing bones only", name, len(skeleton), MAX_SKINNING_BONES,
            )
    return SkinnedMesh(name=name, skeleton=skeleton, geometry=geometry)


def load_scene(path: Path) -> SkinnedMesh:
    """Load a scene file from disk."""
    path = Path(path)
    mesh = build_mesh(load_json(path), default_name=path.stem)
    logger.info(
        "Loaded scene '%s' from %s: %d bones, %d vertices",
        mesh.name, path.name, len(mesh.skeleton),
        mesh.geometry.vertex_count if mesh.geometry is not None else 0,
    )
    return mesh


def load_builtin_scene(name: str) -> SkinnedMesh:
    """Load one of the scenes shipped in assets/skeletons/."""
    return load_scene(skeleton_path(name))
