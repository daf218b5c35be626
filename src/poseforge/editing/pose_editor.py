"""Pointer/keyboard controller that poses the skeleton.

States::

    IDLE ──move──▶ HOVERING ──press (no bone)──▶ DRAGGING_CAMERA ──release──▶ HOVERING
      │                │
      └──press on a highlighted bone──▶ DRAGGING_BONE ──release──▶ IDLE

While hovering every pointer move re-runs the picker and updates the
skeleton's highlighted bone. While dragging a bone every move turns the
bone about the camera's view axis so that it points at the cursor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from poseforge.constants import BONE_ROLL_ANGLE, BUILTIN_SCENES, ROLL_SPEED, ZOOM_SPEED
from poseforge.core.events import EventBus, EventType
from poseforge.core.math_utils import normalize, quat_from_axis_angle, quat_multiply
from poseforge.core.mesh import SkinnedMesh
from poseforge.core.state import EditorMode, EditorSession
from poseforge.editing.drag_rotation import drag_rotation_angle, joint_space_increment, mouse_ray
from poseforge.rendering.orbit_controls import OrbitControls
from poseforge.skeleton.picker import PickResult, pick_bone

logger = logging.getLogger(__name__)

# Pointer button bitmask, as reported while the pointer moves
BUTTON_PRIMARY = 1
BUTTON_SECONDARY = 2
BUTTON_MIDDLE = 4


@dataclass
class PointerEvent:
    """Raw pointer sample from the input layer.

    ``screen_*`` are absolute screen coordinates (used for camera drag
    deltas); ``offset_*`` are relative to the viewport's top-left corner
    (used for ray casting). ``buttons`` is the held-button bitmask.
    """
    screen_x: float
    screen_y: float
    offset_x: float
    offset_y: float
    buttons: int = 0


@dataclass
class KeyEvent:
    """Key press identified by a DOM-style code such as ``"KeyW"`` or ``"ArrowLeft"``."""
    code: str


def _orbit_button(buttons: int) -> int:
    if buttons & BUTTON_PRIMARY:
        return OrbitControls.BUTTON_LEFT
    if buttons & BUTTON_SECONDARY:
        return OrbitControls.BUTTON_RIGHT
    if buttons & BUTTON_MIDDLE:
        return OrbitControls.BUTTON_MIDDLE
    return OrbitControls.BUTTON_LEFT


class PoseEditor:
    """Turns pointer and key events into bone rotations and camera moves.

    Parameters
    ----------
    session : EditorSession
        Mesh, camera, viewport size and drag state for this editor.
    event_bus : EventBus, optional
        Receives highlight, rotation, reset, mode and camera notifications.
    """

    def __init__(self, session: EditorSession, event_bus: Optional[EventBus] = None) -> None:
        self.session = session
        self.event_bus = event_bus if event_bus is not None else EventBus()
        self.orbit_controls = OrbitControls(session.camera)

        # Called with a built-in scene name when a digit key is pressed
        self.on_scene_requested: Optional[Callable[[str], None]] = None

        self._key_handlers: dict[str, Callable[[], None]] = {
            "KeyW": lambda: self._move_camera(self.session.camera.forward()),
            "KeyS": lambda: self._move_camera(-self.session.camera.forward()),
            "KeyA": lambda: self._move_camera(-self.session.camera.right()),
            "KeyD": lambda: self._move_camera(self.session.camera.right()),
            "ArrowUp": lambda: self._move_camera(self.session.camera.up()),
            "ArrowDown": lambda: self._move_camera(-self.session.camera.up()),
            "ArrowLeft": lambda: self._roll(-1.0),
            "ArrowRight": lambda: self._roll(1.0),
            "KeyR": self.reset,
        }

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def mode(self) -> EditorMode:
        return self.session.mode

    @property
    def skeleton(self):
        return self.session.skeleton

    @property
    def highlighted_bone(self) -> Optional[int]:
        return self.skeleton.highlighted_bone

    @property
    def target_bone(self) -> Optional[int]:
        """Bone that key rolls apply to: the dragged bone, else the highlighted one."""
        if self.session.drag.bone is not None:
            return self.session.drag.bone
        return self.skeleton.highlighted_bone

    def set_mesh(self, mesh: SkinnedMesh) -> None:
        """Switch to a new mesh; any drag in progress is dropped."""
        self.session.mesh = mesh
        self.session.drag.clear()
        self.orbit_controls.on_mouse_release()
        self._set_mode(EditorMode.IDLE)
        logger.info("Editing '%s' (%d bones)", mesh.name, len(mesh.skeleton))
        self.event_bus.publish(EventType.SCENE_LOADED, name=mesh.name, bone_count=len(mesh.skeleton))

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def on_pointer_down(self, event: PointerEvent) -> bool:
        """Start a bone drag or a camera drag. Returns True if consumed."""
        if not 0 <= event.offset_y < self.session.viewport_height:
            return False

        highlighted = self.skeleton.highlighted_bone
        if highlighted is not None and event.buttons & BUTTON_PRIMARY:
            self.session.drag.begin(highlighted)
            self._set_mode(EditorMode.DRAGGING_BONE)
            logger.debug("Bone drag started on bone %d", highlighted)
        else:
            self.orbit_controls.on_mouse_press(
                event.screen_x, event.screen_y, _orbit_button(event.buttons),
            )
            self._set_mode(EditorMode.DRAGGING_CAMERA)
        return True

    def on_pointer_move(self, event: PointerEvent) -> None:
        mode = self.session.mode
        if mode == EditorMode.DRAGGING_BONE:
            if event.buttons & BUTTON_PRIMARY:
                self._drag_bone(event)
        elif mode == EditorMode.DRAGGING_CAMERA:
            if self.orbit_controls.on_mouse_move(event.screen_x, event.screen_y):
                self.event_bus.publish(EventType.CAMERA_CHANGED)
        else:
            self.hover(event.offset_x, event.offset_y)
            self._set_mode(EditorMode.HOVERING)

    def on_pointer_up(self, event: PointerEvent) -> None:
        mode = self.session.mode
        if mode == EditorMode.DRAGGING_BONE:
            drag = self.session.drag
            logger.debug(
                "Bone drag on bone %s ended: %d samples applied, %d skipped",
                drag.bone, drag.samples_applied, drag.samples_skipped,
            )
            drag.clear()
            self._set_mode(EditorMode.IDLE)
        elif mode == EditorMode.DRAGGING_CAMERA:
            self.orbit_controls.on_mouse_release()
            self._set_mode(EditorMode.HOVERING)

    def on_scroll(self, delta: float) -> None:
        self.orbit_controls.on_scroll(delta)
        self.event_bus.publish(EventType.CAMERA_CHANGED)

    def hover(self, x: float, y: float) -> PickResult:
        """Pick the bone under a viewport pixel and make it the highlighted bone."""
        s = self.session
        ray = mouse_ray(x, y, s.viewport_width, s.viewport_height, s.camera)
        result = pick_bone(ray, self.skeleton.bones)
        if result.bone != self.skeleton.highlighted_bone:
            self.skeleton.highlighted_bone = result.bone
            self.event_bus.publish(EventType.BONE_HIGHLIGHTED, index=result.bone)
        return result

    # ------------------------------------------------------------------
    # Key events
    # ------------------------------------------------------------------

    def on_key_down(self, event: KeyEvent) -> bool:
        """Dispatch a key press. Returns False for unbound keys."""
        handler = self._key_handlers.get(event.code)
        if handler is not None:
            handler()
            return True
        if event.code.startswith("Digit") and event.code[5:].isdigit():
            return self._request_scene(int(event.code[5:]))
        logger.debug("Key '%s' was pressed (unbound).", event.code)
        return False

    def roll_bone(self, index: int, direction: float) -> None:
        """Spin a bone about its own bind-pose axis by one roll step.

        The increment is composed on the right of the current rotation, so
        it acts about the bone's own long axis rather than a view axis.
        """
        bone = self.skeleton[index]
        increment = quat_from_axis_angle(bone.bind_axis, direction * BONE_ROLL_ANGLE)
        self.skeleton.set_rotation(index, quat_multiply(bone.rotation, increment))
        self.event_bus.publish(EventType.BONE_ROTATED, index=index, rotation=bone.rotation.copy())

    def reset(self) -> None:
        """Return the skeleton to its bind pose and the camera to its home view."""
        self.skeleton.reset_pose()
        self.session.camera.reset()
        self.event_bus.publish(EventType.POSE_RESET)
        self.event_bus.publish(EventType.CAMERA_CHANGED)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _drag_bone(self, event: PointerEvent) -> None:
        s = self.session
        index = s.drag.bone
        bone = self.skeleton[index]
        camera = s.camera

        ray = mouse_ray(event.offset_x, event.offset_y, s.viewport_width, s.viewport_height, camera)
        axis = normalize(camera.forward())
        angle = drag_rotation_angle(ray, axis, bone.position, bone.endpoint)
        if angle is None:
            s.drag.samples_skipped += 1
            logger.debug("Skipped degenerate drag sample on bone %d", index)
            return

        parent_d = None if bone.parent is None else self.skeleton[bone.parent].deformed_world
        increment = joint_space_increment(axis, angle, parent_d)
        self.skeleton.set_rotation(index, quat_multiply(increment, bone.rotation))
        s.drag.just_started = False
        s.drag.samples_applied += 1
        self.event_bus.publish(EventType.BONE_ROTATED, index=index, rotation=bone.rotation.copy())

    def _roll(self, direction: float) -> None:
        target = self.target_bone
        if target is not None:
            self.roll_bone(target, direction)
        else:
            self.session.camera.roll(ROLL_SPEED, clockwise=direction > 0)
            self.event_bus.publish(EventType.CAMERA_CHANGED)

    def _move_camera(self, direction) -> None:
        self.session.camera.offset(direction, ZOOM_SPEED, move_target=True)
        self.event_bus.publish(EventType.CAMERA_CHANGED)

    def _request_scene(self, number: int) -> bool:
        if not 1 <= number <= len(BUILTIN_SCENES):
            logger.debug("No built-in scene bound to key %d", number)
            return False
        name = BUILTIN_SCENES[number - 1]
        self.event_bus.publish(EventType.SCENE_REQUESTED, name=name)
        if self.on_scene_requested is not None:
            self.on_scene_requested(name)
        return True

    def _set_mode(self, mode: EditorMode) -> None:
        if mode != self.session.mode:
            self.session.mode = mode
            self.event_bus.publish(EventType.MODE_CHANGED, mode=mode)
