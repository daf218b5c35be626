"""VAO / VBO management for the bone overlay and the skinned mesh.

Uses OpenGL 3.3 core profile.

GLBoneLines owns one VAO with:
  - VBO slot 0: joint/tip positions (vec3, location 0), streamed each frame
  - VBO slot 1: owning bone index   (float, location 1)

GLSkinnedMesh owns one VAO with:
  - VBO slot 0: bind-pose positions (vec3, location 0)
  - VBO slot 1: normals             (vec3, location 1)
  - VBO slot 2: skin indices        (vec4, location 2)
  - VBO slot 3: skin weights        (vec4, location 3)
  - Optional EBO for indexed geometry
"""

import logging

import numpy as np
from OpenGL.GL import (
    GL_ARRAY_BUFFER,
    GL_DYNAMIC_DRAW,
    GL_ELEMENT_ARRAY_BUFFER,
    GL_FALSE,
    GL_FLOAT,
    GL_LINES,
    GL_POINTS,
    GL_STATIC_DRAW,
    GL_TRIANGLES,
    GL_UNSIGNED_INT,
    glBindBuffer,
    glBindVertexArray,
    glBufferData,
    glBufferSubData,
    glDeleteBuffers,
    glDeleteVertexArrays,
    glDrawArrays,
    glDrawElements,
    glEnableVertexAttribArray,
    glGenBuffers,
    glGenVertexArrays,
    glVertexAttribPointer,
)

from poseforge.core.mesh import INFLUENCES_PER_VERTEX, SkinnedGeometry
from poseforge.skeleton.skeleton import Skeleton

logger = logging.getLogger(__name__)


def _attribute_buffer(location: int, size: int, data: np.ndarray, usage: int) -> int:
    vbo = glGenBuffers(1)
    glBindBuffer(GL_ARRAY_BUFFER, vbo)
    glBufferData(GL_ARRAY_BUFFER, data.nbytes, data, usage)
    glVertexAttribPointer(location, size, GL_FLOAT, GL_FALSE, 0, None)
    glEnableVertexAttribArray(location)
    return vbo


class GLBoneLines:
    """GPU-side line segments for every bone of a skeleton.

    Call :meth:`upload` once and :meth:`update_positions` whenever the pose
    changes. Each bone contributes one line (joint to tip).
    """

    def __init__(self, skeleton: Skeleton) -> None:
        self._skeleton = skeleton
        self._vao: int = 0
        self._vbo_pos: int = 0
        self._vbo_index: int = 0
        self._vertex_count: int = 0
        self._uploaded: bool = False

    def upload(self) -> None:
        if self._uploaded:
            self.destroy()

        positions, _, bone_index = self._skeleton.bone_line_buffers()
        self._vertex_count = len(bone_index)

        self._vao = glGenVertexArrays(1)
        glBindVertexArray(self._vao)
        self._vbo_pos = _attribute_buffer(0, 3, positions, GL_DYNAMIC_DRAW)
        self._vbo_index = _attribute_buffer(1, 1, bone_index, GL_STATIC_DRAW)
        glBindVertexArray(0)
        glBindBuffer(GL_ARRAY_BUFFER, 0)

        self._uploaded = True
        logger.debug("GLBoneLines uploaded: %d bones", self._vertex_count // 2)

    def update_positions(self) -> None:
        """Stream the skeleton's current joint and tip positions."""
        if not self._uploaded:
            return
        positions, _, _ = self._skeleton.bone_line_buffers()
        glBindBuffer(GL_ARRAY_BUFFER, self._vbo_pos)
        glBufferSubData(GL_ARRAY_BUFFER, 0, positions.nbytes, positions)
        glBindBuffer(GL_ARRAY_BUFFER, 0)

    def draw(self) -> None:
        """Draw lines then joint dots. Shader and uniforms must be bound."""
        if not self._uploaded:
            return
        glBindVertexArray(self._vao)
        glDrawArrays(GL_LINES, 0, self._vertex_count)
        glDrawArrays(GL_POINTS, 0, self._vertex_count)
        glBindVertexArray(0)

    def destroy(self) -> None:
        for attr in ("_vbo_index", "_vbo_pos"):
            buf = getattr(self, attr)
            if buf:
                glDeleteBuffers(1, [buf])
                setattr(self, attr, 0)
        if self._vao:
            glDeleteVertexArrays(1, [self._vao])
            self._vao = 0
        self._uploaded = False

    @property
    def uploaded(self) -> bool:
        return self._uploaded


class GLSkinnedMesh:
    """GPU-side copy of a :class:`SkinnedGeometry`.

    The geometry never changes after upload; deformation happens in the
    vertex shader from the skeleton's skinning matrices.
    """

    def __init__(self, geometry: SkinnedGeometry) -> None:
        self._geometry = geometry
        self._vao: int = 0
        self._buffers: list[int] = []
        self._ebo: int = 0
        self._vertex_count: int = geometry.vertex_count
        self._index_count: int = 0
        self._has_indices: bool = geometry.has_indices
        self._uploaded: bool = False

    def upload(self) -> None:
        """Create VAO, VBOs (and optional EBO) and upload vertex data."""
        if self._uploaded:
            self.destroy()

        g = self._geometry
        self._vao = glGenVertexArrays(1)
        glBindVertexArray(self._vao)

        self._buffers = [
            _attribute_buffer(0, 3, g.positions.astype(np.float32), GL_STATIC_DRAW),
            _attribute_buffer(1, 3, g.normals.astype(np.float32), GL_STATIC_DRAW),
            _attribute_buffer(2, INFLUENCES_PER_VERTEX, g.skin_indices.astype(np.float32), GL_STATIC_DRAW),
            _attribute_buffer(3, INFLUENCES_PER_VERTEX, g.skin_weights.astype(np.float32), GL_STATIC_DRAW),
        ]

        if self._has_indices:
            idx_data = g.indices.astype(np.uint32)
            self._index_count = len(idx_data)
            self._ebo = glGenBuffers(1)
            glBindBuffer(GL_ELEMENT_ARRAY_BUFFER, self._ebo)
            glBufferData(GL_ELEMENT_ARRAY_BUFFER, idx_data.nbytes, idx_data, GL_STATIC_DRAW)

        # Unbind VAO (leave EBO bound inside VAO state)
        glBindVertexArray(0)
        glBindBuffer(GL_ARRAY_BUFFER, 0)

        self._uploaded = True
        logger.debug(
            "GLSkinnedMesh uploaded: %d verts, %d indices",
            self._vertex_count, self._index_count,
        )

    def draw(self) -> None:
        if not self._uploaded:
            return
        glBindVertexArray(self._vao)
        if self._has_indices:
            glDrawElements(GL_TRIANGLES, self._index_count, GL_UNSIGNED_INT, None)
        else:
            glDrawArrays(GL_TRIANGLES, 0, self._vertex_count)
        glBindVertexArray(0)

    def destroy(self) -> None:
        """Delete all owned GL resources."""
        if self._ebo:
            glDeleteBuffers(1, [self._ebo])
            self._ebo = 0
        if self._buffers:
            glDeleteBuffers(len(self._buffers), self._buffers)
            self._buffers = []
        if self._vao:
            glDeleteVertexArrays(1, [self._vao])
            self._vao = 0
        self._uploaded = False

    @property
    def uploaded(self) -> bool:
        return self._uploaded
