"""Editable triangle geometry.

A :class:`Geometry` holds vertex positions and triangles (index triples into
the vertex list). Every edit keeps all triangle indices pointing at live
vertices:

- ``delete_vertex`` removes a vertex by moving the last vertex into its slot,
  drops the triangles that used the removed vertex and re-points triangles
  that used the moved one.
- Batch deletions run highest index first, since each single deletion
  invalidates indices at or above the deleted slot.

``pack`` moves the geometry into a :class:`~emg.scene.models.Document`;
the geometry cannot be used afterwards.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..errors import PreconditionError
from ..logging import get_logger
from ..packing.constants import MAX_SHORT_INDEXED_VERTICES
from ..packing.elements import ComponentType, ElementShape
from .models import BufferTarget, Document, MeshPrimitive

__all__ = ["Geometry", "SELECTION_TOLERANCE"]

SELECTION_TOLERANCE = 1e-6

Vec3 = Sequence[float]

_CUBE_VERTICES = (
    (-1.0, 1.0, -1.0),
    (-1.0, 1.0, 1.0),
    (-1.0, -1.0, -1.0),
    (-1.0, -1.0, 1.0),
    (1.0, 1.0, -1.0),
    (1.0, 1.0, 1.0),
    (1.0, -1.0, -1.0),
    (1.0, -1.0, 1.0),
)

_CUBE_TRIANGLES = (
    # top
    (1, 3, 5),
    (3, 7, 5),
    # +X
    (4, 5, 6),
    (5, 7, 6),
    # -X
    (0, 2, 1),
    (1, 2, 3),
    # +Y
    (0, 1, 4),
    (1, 5, 4),
    # -Y
    (2, 6, 3),
    (3, 6, 7),
    # bottom
    (0, 4, 2),
    (2, 4, 6),
)


class Geometry:
    def __init__(
        self,
        vertices: Iterable[Vec3] = (),
        triangles: Iterable[Sequence[int]] = (),
    ) -> None:
        verts = np.asarray(list(vertices), dtype=np.float64).reshape(-1, 3)
        tris = np.asarray(list(triangles), dtype=np.int64).reshape(-1, 3)
        if tris.size and (tris.min() < 0 or tris.max() >= len(verts)):
            raise PreconditionError(
                f"triangle index out of range for {len(verts)} vertices"
            )
        self._vertices = verts
        self._triangles = tris
        self._consumed = False

    @classmethod
    def cube(cls) -> "Geometry":
        """Unit cube spanning [-1, 1] on every axis, wound outward."""
        return cls(_CUBE_VERTICES, _CUBE_TRIANGLES)

    def _live(self) -> None:
        if self._consumed:
            raise PreconditionError("geometry was consumed by pack()")

    @property
    def vertices(self) -> np.ndarray:
        self._live()
        return self._vertices

    @property
    def triangles(self) -> np.ndarray:
        self._live()
        return self._triangles

    # Transforms ----------------------------------------------------------------
    def translate(self, v: Vec3) -> "Geometry":
        self._vertices = self.vertices + np.asarray(v, dtype=np.float64)
        return self

    def scale(self, v: Vec3) -> "Geometry":
        self._vertices = self.vertices * np.asarray(v, dtype=np.float64)
        return self

    # Selection -----------------------------------------------------------------
    def select_vertices(self, b1: Vec3, b2: Vec3) -> List[int]:
        """Indices of vertices inside the box spanned by corners ``b1``/``b2``."""
        corners = np.asarray([b1, b2], dtype=np.float64)
        lo = corners.min(axis=0) - SELECTION_TOLERANCE
        hi = corners.max(axis=0) + SELECTION_TOLERANCE
        verts = self.vertices
        inside = np.all((verts > lo) & (verts < hi), axis=1)
        return [int(i) for i in np.flatnonzero(inside)]

    def select_triangles(self, b1: Vec3, b2: Vec3) -> List[int]:
        """Indices of triangles whose three vertices are all selected."""
        selected = np.zeros(len(self.vertices), dtype=bool)
        selected[self.select_vertices(b1, b2)] = True
        if not len(self._triangles):
            return []
        inside = np.all(selected[self._triangles], axis=1)
        return [int(i) for i in np.flatnonzero(inside)]

    # Deletion ------------------------------------------------------------------
    def delete_vertex(self, index: int) -> None:
        # Arrays handed out by the properties stay unchanged.
        verts = self.vertices.copy()
        last = len(verts) - 1
        if not 0 <= index <= last:
            raise PreconditionError(
                f"vertex index {index} out of range ({len(verts)} vertices)"
            )
        tris = self._triangles
        tris = tris[~np.any(tris == index, axis=1)]
        if index != last:
            verts[index] = verts[last]
            tris = np.where(tris == last, index, tris)
        self._vertices = verts[:last]
        self._triangles = tris

    def delete_triangle(self, index: int) -> None:
        tris = self.triangles
        if not 0 <= index < len(tris):
            raise PreconditionError(
                f"triangle index {index} out of range ({len(tris)} triangles)"
            )
        self._triangles = np.delete(tris, index, axis=0)

    def delete_vertices(self, indices: Iterable[int]) -> None:
        for index in sorted(set(indices), reverse=True):
            self.delete_vertex(index)

    def delete_triangles(self, indices: Iterable[int]) -> None:
        for index in sorted(set(indices), reverse=True):
            self.delete_triangle(index)

    def remove_unreferenced_vertices(self) -> int:
        """Delete vertices no triangle uses; return how many were removed."""
        used = np.zeros(len(self.vertices), dtype=bool)
        used[self._triangles.ravel()] = True
        stray = [int(i) for i in np.flatnonzero(~used)]
        self.delete_vertices(stray)
        return len(stray)

    # Packing -------------------------------------------------------------------
    def bounds(self) -> Tuple[List[float], List[float]]:
        """Per-axis (min, max), rounded to the 32-bit float values packed."""
        verts = self.vertices.astype(np.float32)
        return (
            [float(v) for v in verts.min(axis=0)],
            [float(v) for v in verts.max(axis=0)],
        )

    def pack(self, document: Document) -> Tuple[int, Optional[int]]:
        """Move positions and indices into ``document``.

        Returns ``(position_accessor, indices_accessor)``; the latter is
        ``None`` when there are no triangles.
        """
        verts = self.vertices
        if not len(verts):
            raise PreconditionError("cannot pack a geometry without vertices")
        lo, hi = self.bounds()

        position, view = document.append(
            verts, ElementShape.VEC3, ComponentType.FLOAT
        )
        document.buffer_views[view].target = BufferTarget.ARRAY_BUFFER
        document.accessors[position].min = lo
        document.accessors[position].max = hi

        indices: Optional[int] = None
        if len(self._triangles):
            index_type = (
                ComponentType.UNSIGNED_SHORT
                if len(verts) < MAX_SHORT_INDEXED_VERTICES
                else ComponentType.UNSIGNED_INT
            )
            indices, view = document.append(
                self._triangles.ravel(), ElementShape.SCALAR, index_type
            )
            document.buffer_views[view].target = BufferTarget.ELEMENT_ARRAY_BUFFER

        get_logger().debug(
            "Packed geometry: vertices=%d triangles=%d min=%s max=%s",
            len(verts),
            len(self._triangles),
            lo,
            hi,
        )
        self._consumed = True
        self._vertices = np.empty((0, 3))
        self._triangles = np.empty((0, 3), dtype=np.int64)
        return position, indices

    def to_primitive(
        self, document: Document, material: Optional[int] = None
    ) -> MeshPrimitive:
        position, indices = self.pack(document)
        return MeshPrimitive(
            attributes={"POSITION": position},
            indices=indices,
            material=material,
        )
