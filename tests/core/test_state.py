"""Tests for editor session state."""

from poseforge.core.mesh import SkinnedMesh
from poseforge.core.state import DragState, EditorMode, EditorSession
from poseforge.rendering.camera import Camera
from poseforge.skeleton.bone import BoneRecord
from poseforge.skeleton.skeleton import Skeleton


def _session():
    skeleton = Skeleton([BoneRecord(None, [0, 0, 0], [0, 1, 0])])
    return EditorSession(mesh=SkinnedMesh(name="one", skeleton=skeleton), camera=Camera())


def test_session_defaults():
    s = _session()
    assert s.mode == EditorMode.IDLE
    assert s.drag.bone is None
    assert s.viewport_width == 800
    assert s.viewport_height == 600


def test_session_skeleton_is_mesh_skeleton():
    s = _session()
    assert s.skeleton is s.mesh.skeleton


def test_set_viewport_updates_camera_aspect():
    s = _session()
    s.set_viewport(400, 200)
    assert s.viewport_width == 400
    assert s.viewport_height == 200
    assert s.camera.aspect == 2.0


def test_set_viewport_never_zero():
    s = _session()
    s.set_viewport(0, 0)
    assert s.viewport_width == 1
    assert s.viewport_height == 1


def test_sessions_are_independent():
    a = _session()
    b = _session()
    a.skeleton.highlighted_bone = 0
    a.drag.begin(0)
    assert b.skeleton.highlighted_bone is None
    assert b.drag.bone is None
    assert a.camera is not b.camera


def test_drag_state_begin_and_clear():
    d = DragState()
    d.begin(2)
    assert d.bone == 2
    assert d.just_started is True
    assert d.samples_applied == 0
    d.samples_applied = 5
    d.clear()
    assert d.bone is None
    assert d.just_started is False
