"""Shared constants and paths for PoseForge."""

from pathlib import Path

# Package paths
PACKAGE_ROOT = Path(__file__).parent
ASSETS_DIR = PACKAGE_ROOT / "assets"
SKELETON_DIR = ASSETS_DIR / "skeletons"

# Built-in scenes, in the order the digit keys select them (1-based)
BUILTIN_SCENES = (
    "two_bone",
    "long_chain",
    "split_tree",
    "skinned_column",
    "robot_arm",
)

# Picking: every bone is a capped cylinder of this radius (world units)
PICK_RADIUS = 0.1

# Keyboard roll of the highlighted bone about its bind axis (radians)
BONE_ROLL_ANGLE = 0.1

# Drag plane / projection degeneracy threshold
PARALLEL_EPSILON = 1e-8

# Camera defaults
DEFAULT_CAMERA_POS = (0.0, 0.0, -6.0)
DEFAULT_CAMERA_TARGET = (0.0, 0.0, 0.0)
DEFAULT_CAMERA_UP = (0.0, 1.0, 0.0)
DEFAULT_FOV = 45.0
NEAR_PLANE = 0.1
FAR_PLANE = 1000.0

# Camera control speeds
ROTATION_SPEED = 0.05
ZOOM_SPEED = 0.1
ROLL_SPEED = 0.1
PAN_SPEED = 0.1

# Camera distance limits for zooming
MIN_CAMERA_DISTANCE = 0.5
MAX_CAMERA_DISTANCE = 500.0

# Size of the skinning matrix uniform array in the skin vertex shader
MAX_SKINNING_BONES = 64
