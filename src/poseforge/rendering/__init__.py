"""Rendering subsystem -- OpenGL 3.3 core profile with PySide6 integration.

Only the GL-free pieces are re-exported here; import the GL modules
(``renderer``, ``gl_widget``, ``gl_skeleton``) directly.
"""

from poseforge.rendering.camera import Camera
from poseforge.rendering.orbit_controls import OrbitControls

__all__ = [
    "Camera",
    "OrbitControls",
]
