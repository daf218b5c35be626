"""Mesh data structures for skinned geometry storage (no GL dependencies)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from poseforge.skeleton.skeleton import Skeleton


# Bone influences per vertex
INFLUENCES_PER_VERTEX = 4


@dataclass
class SkinnedGeometry:
    """Stores vertex attribute arrays for a skinned mesh.

    All arrays use float32 for GL compatibility.
    positions: Nx3 flat array (x,y,z per vertex), bind pose
    normals: Nx3 flat array
    indices: triangle index array (uint32), optional
    skin_indices: Nx4 flat array of bone indices influencing each vertex
    skin_weights: Nx4 flat array of matching blend weights
    """
    positions: NDArray[np.float32]
    normals: NDArray[np.float32]
    skin_indices: NDArray[np.float32]
    skin_weights: NDArray[np.float32]
    indices: Optional[NDArray[np.uint32]] = None
    vertex_count: int = 0

    def __post_init__(self):
        if self.vertex_count == 0:
            self.vertex_count = len(self.positions) // 3

    @property
    def has_indices(self) -> bool:
        return self.indices is not None and len(self.indices) > 0

    @property
    def max_bone_index(self) -> int:
        """Largest bone index referenced with a non-zero weight (-1 if none)."""
        idx = self.skin_indices.reshape(-1, INFLUENCES_PER_VERTEX)
        w = self.skin_weights.reshape(-1, INFLUENCES_PER_VERTEX)
        used = idx[w > 0.0]
        if used.size == 0:
            return -1
        return int(used.max())


@dataclass
class SkinnedMesh:
    """A skeleton plus the geometry it deforms.

    The geometry is forwarded untouched to the renderer; only the
    skeleton is edited.
    """
    name: str
    skeleton: Skeleton
    geometry: Optional[SkinnedGeometry] = None
