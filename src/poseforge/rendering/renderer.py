"""Main OpenGL renderer -- draws the skinned mesh and the bone overlay.

Uses OpenGL 3.3 core profile. The mesh is skinned on the GPU from the
skeleton's skinning matrices; the bones are drawn on top as lines with
the highlighted bone in a second colour.
"""

import logging

from OpenGL.GL import (
    GL_COLOR_BUFFER_BIT,
    GL_DEPTH_BUFFER_BIT,
    GL_DEPTH_TEST,
    GL_LESS,
    GL_MULTISAMPLE,
    glClear,
    glClearColor,
    glDepthFunc,
    glDisable,
    glEnable,
    glLineWidth,
    glPointSize,
    glViewport,
)

from poseforge.constants import MAX_SKINNING_BONES
from poseforge.core.mesh import SkinnedMesh
from poseforge.rendering.camera import Camera
from poseforge.rendering.gl_skeleton import GLBoneLines, GLSkinnedMesh
from poseforge.rendering.shader_program import ShaderProgram

logger = logging.getLogger(__name__)


class SkeletonRenderer:
    """Uploads a :class:`SkinnedMesh` on demand and draws it.

    Usage
    -----
    1. Call :meth:`init_gl` once after a valid GL context is current.
    2. Call :meth:`resize` whenever the viewport changes.
    3. Call :meth:`render` each frame.
    4. Call :meth:`destroy` on shutdown.
    """

    # Background colour (dark blue-grey)
    CLEAR_COLOR = (0.12, 0.12, 0.15, 1.0)
    MESH_COLOR = (0.75, 0.7, 0.65)
    BONE_COLOR = (0.9, 0.9, 0.9)
    HIGHLIGHT_COLOR = (1.0, 0.6, 0.1)
    LIGHT_DIR = (0.3, 0.8, -0.5)

    def __init__(self) -> None:
        self._bone_shader: ShaderProgram | None = None
        self._skin_shader: ShaderProgram | None = None
        self._mesh: SkinnedMesh | None = None
        self._gl_bones: GLBoneLines | None = None
        self._gl_skin: GLSkinnedMesh | None = None
        self._initialised: bool = False
        self._width: int = 1
        self._height: int = 1

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init_gl(self) -> None:
        """Set up GL state and compile both shader programs.

        Must be called with a current OpenGL context.
        """
        glClearColor(*self.CLEAR_COLOR)
        glEnable(GL_DEPTH_TEST)
        glDepthFunc(GL_LESS)
        glEnable(GL_MULTISAMPLE)

        self._bone_shader = ShaderProgram.from_files("bone.vert", "bone.frag")
        self._bone_shader.compile()
        self._skin_shader = ShaderProgram.from_files("skin.vert", "skin.frag")
        self._skin_shader.compile()

        self._initialised = True
        logger.info("SkeletonRenderer initialised.")

    def resize(self, width: int, height: int) -> None:
        """Update the viewport dimensions."""
        self._width = max(width, 1)
        self._height = max(height, 1)

    def destroy(self) -> None:
        """Free all GL resources."""
        self._release_mesh()
        for shader in (self._bone_shader, self._skin_shader):
            if shader is not None:
                shader.destroy()
        self._bone_shader = None
        self._skin_shader = None
        self._initialised = False
        logger.info("SkeletonRenderer destroyed.")

    # ------------------------------------------------------------------
    # Frame rendering
    # ------------------------------------------------------------------

    def render(self, mesh: SkinnedMesh, camera: Camera) -> None:
        """Render one frame: clear, draw the skinned mesh, then the bones."""
        if not self._initialised:
            return
        if mesh is not self._mesh:
            self._bind_mesh(mesh)

        glViewport(0, 0, self._width, self._height)
        glClear(GL_COLOR_BUFFER_BIT | GL_DEPTH_BUFFER_BIT)

        view = camera.get_view_matrix()
        proj = camera.get_projection_matrix()
        skeleton = mesh.skeleton

        if self._gl_skin is not None:
            shader = self._skin_shader
            shader.use()
            shader.set_uniform_mat4("uView", view)
            shader.set_uniform_mat4("uProjection", proj)
            shader.set_uniform_mat4_array("uSkinMatrices", skeleton.skinning_matrices())
            shader.set_uniform_vec3("uColor", self.MESH_COLOR)
            shader.set_uniform_vec3("uLightDir", self.LIGHT_DIR)
            self._gl_skin.draw()

        # Bones always draw over the mesh
        self._gl_bones.update_positions()
        shader = self._bone_shader
        shader.use()
        shader.set_uniform_mat4("uView", view)
        shader.set_uniform_mat4("uProjection", proj)
        highlighted = skeleton.highlighted_bone
        shader.set_uniform_float("uHighlightIndex", -1.0 if highlighted is None else float(highlighted))
        shader.set_uniform_vec3("uColor", self.BONE_COLOR)
        shader.set_uniform_vec3("uHighlightColor", self.HIGHLIGHT_COLOR)

        glDisable(GL_DEPTH_TEST)
        glLineWidth(2.0)
        glPointSize(6.0)
        self._gl_bones.draw()
        glLineWidth(1.0)
        glEnable(GL_DEPTH_TEST)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _bind_mesh(self, mesh: SkinnedMesh) -> None:
        self._release_mesh()
        self._mesh = mesh
        self._gl_bones = GLBoneLines(mesh.skeleton)
        self._gl_bones.upload()
        if mesh.geometry is not None and len(mesh.skeleton) <= MAX_SKINNING_BONES:
            self._gl_skin = GLSkinnedMesh(mesh.geometry)
            self._gl_skin.upload()
        logger.debug("Uploaded scene '%s' to the GPU", mesh.name)

    def _release_mesh(self) -> None:
        if self._gl_skin is not None:
            self._gl_skin.destroy()
            self._gl_skin = None
        if self._gl_bones is not None:
            self._gl_bones.destroy()
            self._gl_bones = None
        self._mesh = None
