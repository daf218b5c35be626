"""Skeleton: bone hierarchy with bind-pose and deformed-pose transforms.

Bones live in a flat list and are addressed by their stable index.
World transforms follow

    U(root)  = B(root)            U(child) = U(parent) @ B(child)
    D(root)  = B(root) @ T(root)  D(child) = D(parent) @ B(child) @ T(child)

and every cached joint/tip position is ``D @ inverse(U) @ bind_point``.
"""

import logging
from collections import deque
from typing import Iterator, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from poseforge.core.math_utils import (
    Mat4, Quat,
    mat4_from_quaternion, mat4_identity, mat4_inverse, mat4_translation,
    quat_identity, quat_normalize, transform_point,
)
from poseforge.skeleton.bone import Bone, BoneRecord

logger = logging.getLogger(__name__)


class MalformedHierarchy(ValueError):
    """Bone records do not describe an acyclic forest."""


def _validate_hierarchy(records: Sequence[BoneRecord]) -> tuple[list[set[int]], list[int]]:
    """Check parent/child links and return (children per bone, parent-first order).

    Raises :class:`MalformedHierarchy` on a dangling index, a cycle, or
    child lists that disagree with the parent links.
    """
    n = len(records)
    children: list[set[int]] = [set() for _ in range(n)]
    for i, rec in enumerate(records):
        p = rec.parent
        if p is None:
            continue
        if not isinstance(p, (int, np.integer)) or not 0 <= p < n:
            raise MalformedHierarchy(f"Bone {i} has parent index {p!r} outside [0, {n})")
        if p == i:
            raise MalformedHierarchy(f"Bone {i} is its own parent")
        children[p].add(i)

    # Explicit child lists are optional, but when given they must agree
    if any(rec.children for rec in records):
        for i, rec in enumerate(records):
            given = set(rec.children)
            bad = [c for c in given if not 0 <= c < n]
            if bad:
                raise MalformedHierarchy(f"Bone {i} lists child indices {bad} outside [0, {n})")
            if given != children[i]:
                raise MalformedHierarchy(
                    f"Bone {i} children {sorted(given)} disagree with parent links "
                    f"{sorted(children[i])}"
                )

    # Breadth-first from the roots; anything unreached sits on a cycle
    order: list[int] = []
    queue = deque(i for i, rec in enumerate(records) if rec.parent is None)
    while queue:
        i = queue.popleft()
        order.append(i)
        queue.extend(sorted(children[i]))
    if len(order) != n:
        stuck = sorted(set(range(n)) - set(order))
        raise MalformedHierarchy(f"Cycle in bone hierarchy involving bones {stuck}")
    return children, order


class Skeleton:
    """Owns every bone of a mesh and keeps their transforms consistent.

    Parameters
    ----------
    records : sequence of BoneRecord
        Bind-pose bones; list position is the bone index.
    """

    def __init__(self, records: Sequence[BoneRecord]) -> None:
        # Validate before any bone exists so a failure leaves nothing behind
        children, order = _validate_hierarchy(records)

        self.bones: list[Bone] = [Bone(i, rec) for i, rec in enumerate(records)]
        for bone, kids in zip(self.bones, children):
            bone.children = kids
        self._order = order

        # Currently hovered/selected bone
        self.highlighted_bone: Optional[int] = None

        self._build_bind_pose()
        logger.debug("Skeleton built: %d bones, %d roots", len(self.bones), len(self.roots()))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _build_bind_pose(self) -> None:
        """Build B and U for every bone in parent-first order; T = I, D = U."""
        for i in self._order:
            bone = self.bones[i]
            if bone.is_root:
                offset = bone.bind_position
            else:
                offset = bone.bind_position - self.bones[bone.parent].bind_position
            bone.bind_local = mat4_translation(*offset)

            if bone.is_root:
                bone.bind_world = bone.bind_local.copy()
            else:
                bone.bind_world = self.bones[bone.parent].bind_world @ bone.bind_local
            bone.bind_world_inverse = mat4_inverse(bone.bind_world)

            bone.local_rotation = mat4_identity()
            bone.deformed_world = bone.bind_world.copy()
            bone.position = bone.bind_position.copy()
            bone.endpoint = bone.bind_endpoint.copy()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.bones)

    def __getitem__(self, index: int) -> Bone:
        return self.bones[self._check_index(index)]

    def __iter__(self) -> Iterator[Bone]:
        return iter(self.bones)

    def roots(self) -> list[int]:
        return [b.index for b in self.bones if b.is_root]

    def depth(self, index: int) -> int:
        """Number of ancestors of a bone (0 for a root)."""
        d = 0
        bone = self.bones[self._check_index(index)]
        while bone.parent is not None:
            bone = self.bones[bone.parent]
            d += 1
        return d

    def ancestors(self, index: int) -> list[int]:
        """Ancestor indices, nearest parent first."""
        chain = []
        parent = self.bones[self._check_index(index)].parent
        while parent is not None:
            chain.append(parent)
            parent = self.bones[parent].parent
        return chain

    def descendants(self, index: int) -> list[int]:
        """All bones below *index* (not including it), depth-first."""
        result = []
        stack = sorted(self.bones[self._check_index(index)].children, reverse=True)
        while stack:
            i = stack.pop()
            result.append(i)
            stack.extend(sorted(self.bones[i].children, reverse=True))
        return result

    def find(self, name: str) -> Optional[Bone]:
        """First bone with the given name, or None."""
        for bone in self.bones:
            if bone.name == name:
                return bone
        return None

    # ------------------------------------------------------------------
    # Pose mutation
    # ------------------------------------------------------------------

    def set_rotation(self, index: int, rotation: Quat) -> None:
        """Replace a bone's joint rotation and propagate through its subtree."""
        bone = self.bones[self._check_index(index)]
        bone.rotation = quat_normalize(np.asarray(rotation, dtype=np.float64))
        self.update(index)

    def reset_pose(self) -> None:
        """Return every bone to the bind pose."""
        for bone in self.bones:
            bone.rotation = quat_identity()
        for root in self.roots():
            self.update(root)
        logger.info("Pose reset (%d bones)", len(self.bones))

    def update(self, index: int) -> None:
        """Recompute D, position and endpoint for a bone and its whole subtree.

        The bone's own D is rebuilt from the root down using the current
        rotations of all its ancestors, not their cached D, so an ancestor
        rotated without its own update still contributes correctly.
        Bones outside the subtree are not touched.
        """
        bone = self.bones[self._check_index(index)]
        bone.local_rotation = mat4_from_quaternion(bone.rotation)
        bone.deformed_world = self._deformed_from_chain(index)
        self._refresh_points(bone)

        # Explicit stack: each child composes on its parent's fresh D
        stack = sorted(bone.children, reverse=True)
        while stack:
            child = self.bones[stack.pop()]
            child.local_rotation = mat4_from_quaternion(child.rotation)
            parent_d = self.bones[child.parent].deformed_world
            child.deformed_world = parent_d @ child.bind_local @ child.local_rotation
            self._refresh_points(child)
            stack.extend(sorted(child.children, reverse=True))

    def _deformed_from_chain(self, index: int) -> Mat4:
        """D for *index*, composed from the root using live rotations."""
        chain = [index] + self.ancestors(index)
        d = mat4_identity()
        for i in reversed(chain):
            b = self.bones[i]
            t = b.local_rotation if i == index else mat4_from_quaternion(b.rotation)
            d = d @ b.bind_local @ t
        return d

    @staticmethod
    def _refresh_points(bone: Bone) -> None:
        skin = bone.deformed_world @ bone.bind_world_inverse
        bone.position = transform_point(skin, bone.bind_position)
        bone.endpoint = transform_point(skin, bone.bind_endpoint)

    # ------------------------------------------------------------------
    # Renderer export (read-only)
    # ------------------------------------------------------------------

    def skinning_matrices(self) -> NDArray[np.float32]:
        """(N, 4, 4) float32 array of ``D @ inverse(U)`` per bone."""
        out = np.empty((len(self.bones), 4, 4), dtype=np.float32)
        for i, bone in enumerate(self.bones):
            out[i] = bone.skinning_matrix
        return out

    def bone_translations(self) -> NDArray[np.float32]:
        """Flattened (3N,) live joint positions."""
        out = np.empty(3 * len(self.bones), dtype=np.float32)
        for i, bone in enumerate(self.bones):
            out[3 * i:3 * i + 3] = bone.position
        return out

    def bone_rotations(self) -> NDArray[np.float32]:
        """Flattened (4N,) joint rotations as [x, y, z, w]."""
        out = np.empty(4 * len(self.bones), dtype=np.float32)
        for i, bone in enumerate(self.bones):
            out[4 * i:4 * i + 4] = bone.rotation
        return out

    def bone_line_buffers(self) -> tuple[NDArray[np.float32], NDArray[np.uint32], NDArray[np.float32]]:
        """Line-segment buffers for drawing the bones.

        Returns (positions, indices, bone index attribute): two vertices per
        bone (joint then tip), one line per bone, and the owning bone index
        of every vertex.
        """
        n = len(self.bones)
        positions = np.empty((2 * n, 3), dtype=np.float32)
        for i, bone in enumerate(self.bones):
            positions[2 * i] = bone.position
            positions[2 * i + 1] = bone.endpoint
        indices = np.arange(2 * n, dtype=np.uint32)
        index_attr = np.repeat(np.arange(n, dtype=np.float32), 2)
        return positions.ravel(), indices, index_attr

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _check_index(self, index: int) -> int:
        if not 0 <= index < len(self.bones):
            raise IndexError(f"Bone index {index} out of range [0, {len(self.bones)})")
        return index
