"""Ray picking against per-bone cylinder proxies."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from poseforge.constants import PICK_RADIUS
from poseforge.core.math_utils import Vec3, as_vec3, normalize
from poseforge.skeleton.bone import Bone

logger = logging.getLogger(__name__)


@dataclass
class Ray:
    """World-space ray; *direction* is normalised on construction."""
    origin: Vec3
    direction: Vec3

    def __post_init__(self):
        self.origin = as_vec3(self.origin)
        self.direction = normalize(as_vec3(self.direction))

    def at(self, t: float) -> Vec3:
        return self.origin + self.direction * t


@dataclass(frozen=True)
class PickResult:
    """Nearest hit along a ray. ``bone`` is None when nothing was hit."""
    t: float = math.inf
    bone: Optional[int] = None

    @property
    def hit(self) -> bool:
        return self.bone is not None


NO_HIT = PickResult()


def _on_segment(q: Vec3, p1: Vec3, axis: Vec3, length_sq: float) -> bool:
    """True when *q* projects between the two cylinder caps."""
    s = float(np.dot(q - p1, axis))
    return 0.0 <= s <= length_sq


def intersect_bone_cylinder(
    ray: Ray,
    position: Vec3,
    endpoint: Vec3,
    radius: float = PICK_RADIUS,
) -> Optional[float]:
    """Ray parameter of the nearest valid hit on a finite bone cylinder.

    Returns None for a miss, including degenerate geometry (zero-length
    bone, ray parallel to the bone axis) and cylinders wholly behind the
    ray origin. When the origin is inside the cylinder the far root is
    used.
    """
    seg = endpoint - position
    length_sq = float(np.dot(seg, seg))
    if length_sq < 1e-12:
        return None
    va = seg / math.sqrt(length_sq)

    v = ray.direction
    dp = ray.origin - position
    v_perp = v - np.dot(v, va) * va
    dp_perp = dp - np.dot(dp, va) * va

    a = float(np.dot(v_perp, v_perp))
    b = 2.0 * float(np.dot(v_perp, dp_perp))
    c = float(np.dot(dp_perp, dp_perp)) - radius * radius

    if a < 1e-12:
        return None
    disc = b * b - 4.0 * a * c
    if disc < 0.0:
        return None

    root = math.sqrt(disc)
    t2 = (-b + root) / (2.0 * a)
    if t2 <= 0.0:
        return None

    t1 = (-b - root) / (2.0 * a)
    if t1 > 0.0 and _on_segment(ray.at(t1), position, seg, length_sq):
        return t1
    if _on_segment(ray.at(t2), position, seg, length_sq):
        return t2
    return None


def pick_bone(ray: Ray, bones: Iterable[Bone], radius: float = PICK_RADIUS) -> PickResult:
    """Return the bone whose cylinder the ray hits first.

    Bones are tested at their live ``position``/``endpoint``. On an exact
    tie the lower index wins.
    """
    best = NO_HIT
    for bone in bones:
        t = intersect_bone_cylinder(ray, bone.position, bone.endpoint, radius)
        if t is not None and t < best.t:
            best = PickResult(t=t, bone=bone.index)
    if best.hit:
        logger.debug("Picked bone %d at t=%.4f", best.bone, best.t)
    return best
