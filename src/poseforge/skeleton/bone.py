"""Bone records and live bone state."""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from poseforge.core.math_utils import (
    Mat4, Quat, Vec3,
    as_vec3, mat4_identity, normalize, quat_identity,
)


@dataclass
class BoneRecord:
    """Bind-pose description of one bone as delivered by a loader.

    ``parent`` is the parent's index in the same record list, or None for a
    root. ``children`` may be left empty, in which case it is derived from
    the parent links.
    """
    parent: Optional[int]
    bind_position: Vec3
    bind_endpoint: Vec3
    children: list[int] = field(default_factory=list)
    name: str = ""

    def __post_init__(self):
        self.bind_position = as_vec3(self.bind_position)
        self.bind_endpoint = as_vec3(self.bind_endpoint)


class Bone:
    """A node of the skeleton tree.

    Bones refer to each other only by index into the owning skeleton's
    bone list.

    Matrices:
      B  bind_local     translation from the parent's bind joint to ours
      U  bind_world     cumulative bind transform (parent U @ B)
      T  local_rotation rotation matrix of ``rotation``
      D  deformed_world cumulative live transform (parent D @ B @ T)
    """

    def __init__(self, index: int, record: BoneRecord) -> None:
        self.index = index
        self.name = record.name or f"bone_{index}"
        self.parent: Optional[int] = record.parent
        self.children: set[int] = set(record.children)

        # Bind pose (never modified after load)
        self.bind_position: Vec3 = record.bind_position.copy()
        self.bind_endpoint: Vec3 = record.bind_endpoint.copy()
        self.bind_position.flags.writeable = False
        self.bind_endpoint.flags.writeable = False

        # Live joint rotation relative to the parent's deformed frame
        self.rotation: Quat = quat_identity()

        self.bind_local: Mat4 = mat4_identity()
        self.bind_world: Mat4 = mat4_identity()
        self.bind_world_inverse: Mat4 = mat4_identity()
        self.local_rotation: Mat4 = mat4_identity()
        self.deformed_world: Mat4 = mat4_identity()

        # Cached live joint and tip in world space
        self.position: Vec3 = self.bind_position.copy()
        self.endpoint: Vec3 = self.bind_endpoint.copy()

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def bind_axis(self) -> Vec3:
        """Unit direction from bind joint to bind tip (zero for a degenerate bone)."""
        return normalize(self.bind_endpoint - self.bind_position)

    @property
    def length(self) -> float:
        return float(np.linalg.norm(self.bind_endpoint - self.bind_position))

    @property
    def skinning_matrix(self) -> Mat4:
        """``D @ inverse(U)``: maps bind-pose points to their deformed position."""
        return self.deformed_world @ self.bind_world_inverse

    def __repr__(self) -> str:
        return (f"Bone(index={self.index}, name='{self.name}', "
                f"parent={self.parent}, children={sorted(self.children)})")
