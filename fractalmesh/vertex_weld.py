"""
Vertex welding for recursively generated meshes.

Recursive subdivision emits the same corner many times from neighbouring
branches. Points are quantized to a fixed number of decimal places and
hashed, so coincident corners share one index in the output mesh.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Tuple
from .mesh_io import Point3, Face, TriangleMesh, BoundingBox3D

# Decimal places kept in the weld key
WELD_PRECISION = 5


@dataclass
class GenerationOutput:
    """
    Indexed triangle mesh produced by one generation call.

    Attributes:
        vertex_buffer: Flat render-ready coordinates, 3 floats per point
        index_buffer: Flat render-ready indices, 3 per face
        points: Deduplicated points in insertion order
        faces: Faces referencing ``points`` (0-based)
    """
    vertex_buffer: List[float] = field(default_factory=list)
    index_buffer: List[int] = field(default_factory=list)
    points: List[Point3] = field(default_factory=list)
    faces: List[Face] = field(default_factory=list)

    @property
    def n_points(self) -> int:
        return len(self.points)

    @property
    def n_faces(self) -> int:
        return len(self.faces)

    @property
    def is_empty(self) -> bool:
        """True when no geometry was produced."""
        return not self.points or not self.faces

    def vertex_array(self) -> np.ndarray:
        """Vertex buffer as a float32 (N, 3) array for GPU upload."""
        return np.asarray(self.vertex_buffer, dtype=np.float32).reshape(-1, 3)

    def index_array(self) -> np.ndarray:
        """Index buffer as a uint32 (M, 3) array for GPU upload."""
        return np.asarray(self.index_buffer, dtype=np.uint32).reshape(-1, 3)

    def to_triangle_mesh(self) -> TriangleMesh:
        """Float64 numeric view of the points and faces."""
        vertices = np.array([p.as_tuple() for p in self.points], dtype=np.float64)
        faces = np.array([f.as_tuple() for f in self.faces], dtype=np.int64)
        return TriangleMesh.from_vertices_and_faces(vertices, faces)

    def bounding_sphere(self) -> Tuple[Tuple[float, float, float], float]:
        """
        Sphere enclosing all points, for camera framing.

        The centre is the bounding box centre and the radius is the
        largest distance from it to any point.
        """
        vertices = np.asarray(self.vertex_buffer, dtype=np.float64).reshape(-1, 3)
        center = BoundingBox3D.from_points(vertices).center
        radius = float(np.sqrt(((vertices - np.array(center)) ** 2).sum(axis=1).max()))
        return center, radius


class VertexWeldTable:
    """
    Append-only map from quantized coordinates to vertex indices.

    Each table owns the GenerationOutput it fills; both are created per
    generation call and discarded with it.
    """

    def __init__(self, precision: int = WELD_PRECISION):
        self.scale = 10 ** precision
        self.output = GenerationOutput()
        self._index: Dict[Tuple[int, int, int], int] = {}

    def _key(self, p: Point3) -> Tuple[int, int, int]:
        """Quantization key: coordinates rounded to the weld precision."""
        s = self.scale
        return (int(round(p.x * s)), int(round(p.y * s)), int(round(p.z * s)))

    def lookup_or_insert(self, p: Point3) -> int:
        """
        Return the index of ``p``, inserting it if no welded match exists.

        The first point stored under a key wins; later coincident points
        reuse its index and are not stored.
        """
        key = self._key(p)
        idx = self._index.get(key)
        if idx is not None:
            return idx

        out = self.output
        idx = len(out.points)
        out.points.append(p)
        out.vertex_buffer.extend((p.x, p.y, p.z))
        self._index[key] = idx
        return idx

    def add_face(self, a: int, b: int, c: int) -> None:
        """Append a face made of indices previously issued by this table."""
        out = self.output
        out.faces.append(Face(a, b, c))
        out.index_buffer.extend((a, b, c))

    def __len__(self) -> int:
        return len(self.output.points)
