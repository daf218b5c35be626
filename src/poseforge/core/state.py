"""Editor session state: the mesh being posed, its camera and drag state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from poseforge.core.mesh import SkinnedMesh
    from poseforge.rendering.camera import Camera
    from poseforge.skeleton.skeleton import Skeleton


class EditorMode(Enum):
    IDLE = auto()
    HOVERING = auto()
    DRAGGING_CAMERA = auto()
    DRAGGING_BONE = auto()


@dataclass
class DragState:
    """Bookkeeping for an active bone drag."""
    bone: Optional[int] = None
    # True between the press and the first rotation applied for it
    just_started: bool = False
    samples_applied: int = 0
    samples_skipped: int = 0

    def begin(self, bone: int) -> None:
        self.bone = bone
        self.just_started = True
        self.samples_applied = 0
        self.samples_skipped = 0

    def clear(self) -> None:
        self.bone = None
        self.just_started = False


@dataclass
class EditorSession:
    """Everything one pose-editing session owns.

    Sessions are independent: two sessions never share a skeleton or a
    camera, so several can be driven side by side (or from tests) without
    a rendering surface.
    """
    mesh: SkinnedMesh
    camera: Camera
    viewport_width: int = 800
    viewport_height: int = 600
    mode: EditorMode = EditorMode.IDLE
    drag: DragState = field(default_factory=DragState)

    @property
    def skeleton(self) -> Skeleton:
        return self.mesh.skeleton

    def set_viewport(self, width: int, height: int) -> None:
        self.viewport_width = max(1, int(width))
        self.viewport_height = max(1, int(height))
        self.camera.set_aspect(self.viewport_width, self.viewport_height)
