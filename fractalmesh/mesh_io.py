"""
Mesh I/O and data structures for generated fractal meshes.

Writes and reads the Wavefront OBJ subset used for exported fractals:
a header comment, ``v x y z`` records and 1-based ``f i j k`` records.
"""

import numpy as np
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union
import os


@dataclass(frozen=True)
class Point3:
    """Plain 3D coordinate with no rendering dependency."""
    x: float
    y: float
    z: float

    def __add__(self, other: 'Point3') -> 'Point3':
        return Point3(self.x + other.x, self.y + other.y, self.z + other.z)

    def scaled(self, factor: float) -> 'Point3':
        """Multiply every component by ``factor``."""
        return Point3(self.x * factor, self.y * factor, self.z * factor)

    def offset(self, dx: float, dy: float, dz: float) -> 'Point3':
        """Translate by the given per-axis amounts."""
        return Point3(self.x + dx, self.y + dy, self.z + dz)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Face:
    """Triangle as three 0-based vertex indices; order encodes winding."""
    v1: int
    v2: int
    v3: int

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.v1, self.v2, self.v3)


@dataclass
class BoundingBox3D:
    """3D axis-aligned bounding box."""
    min_x: float
    max_x: float
    min_y: float
    max_y: float
    min_z: float
    max_z: float

    @property
    def width(self) -> float:
        """Size in X direction."""
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        """Size in Y direction."""
        return self.max_y - self.min_y

    @property
    def depth(self) -> float:
        """Size in Z direction."""
        return self.max_z - self.min_z

    @property
    def dimensions(self) -> Tuple[float, float, float]:
        """Return (width, height, depth)."""
        return (self.width, self.height, self.depth)

    @property
    def max_dimension(self) -> float:
        """Largest dimension."""
        return max(self.width, self.height, self.depth)

    @property
    def center(self) -> Tuple[float, float, float]:
        """Center point of bounding box."""
        return (
            (self.min_x + self.max_x) / 2,
            (self.min_y + self.max_y) / 2,
            (self.min_z + self.max_z) / 2,
        )

    @classmethod
    def from_points(cls, vertices: np.ndarray) -> 'BoundingBox3D':
        """Bounding box of an (N, 3) coordinate array."""
        return cls(
            min_x=float(vertices[:, 0].min()),
            max_x=float(vertices[:, 0].max()),
            min_y=float(vertices[:, 1].min()),
            max_y=float(vertices[:, 1].max()),
            min_z=float(vertices[:, 2].min()),
            max_z=float(vertices[:, 2].max()),
        )


@dataclass
class TriangleMesh:
    """
    Numeric view of an indexed triangle mesh.

    Attributes:
        vertices: Nx3 array of vertex coordinates
        triangles: Mx3 array of vertex indices (0-based)
        bbox: Bounding box of the mesh
    """
    vertices: np.ndarray  # Shape: (N, 3)
    triangles: np.ndarray  # Shape: (M, 3), dtype: int
    bbox: BoundingBox3D

    @property
    def n_vertices(self) -> int:
        """Number of vertices."""
        return len(self.vertices)

    @property
    def n_triangles(self) -> int:
        """Number of triangles."""
        return len(self.triangles)

    @property
    def surface_area(self) -> float:
        """Total surface area of mesh."""
        return float(np.sum(self.triangle_areas()))

    def triangle_areas(self) -> np.ndarray:
        """Compute area of each triangle."""
        v0 = self.vertices[self.triangles[:, 0]]
        v1 = self.vertices[self.triangles[:, 1]]
        v2 = self.vertices[self.triangles[:, 2]]

        # Cross product gives area * 2
        cross = np.cross(v1 - v0, v2 - v0)
        return 0.5 * np.linalg.norm(cross, axis=1)

    def signed_volume(self) -> float:
        """
        Enclosed volume by the divergence theorem.

        Positive when faces wind counter-clockwise seen from outside.
        """
        v0 = self.vertices[self.triangles[:, 0]]
        v1 = self.vertices[self.triangles[:, 1]]
        v2 = self.vertices[self.triangles[:, 2]]
        return float(np.einsum('ij,ij->i', v0, np.cross(v1, v2)).sum() / 6.0)

    @classmethod
    def from_vertices_and_faces(cls, vertices, faces) -> 'TriangleMesh':
        """Create mesh from vertex and face arrays."""
        vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)

        if len(vertices) == 0:
            raise ValueError("Cannot build a mesh without vertices")

        return cls(vertices=vertices, triangles=faces,
                   bbox=BoundingBox3D.from_points(vertices))


def _format_float(value: float) -> str:
    # repr gives the shortest string that round-trips exactly
    return repr(float(value))


def _kind_name(kind) -> str:
    return getattr(kind, 'value', kind)


def export_obj(kind, level: int, size: float,
               points: Sequence[Point3], faces: Sequence[Face]) -> str:
    """
    Serialize a generated mesh to OBJ text.

    Args:
        kind: FractalKind (or its string value) recorded in the header
        level: Recursion level recorded in the header
        size: Base size recorded in the header
        points: Deduplicated points, written in order as ``v`` records
        faces: 0-based faces, written in order as 1-based ``f`` records

    Returns:
        The document text, newline terminated
    """
    lines = [f"# {_kind_name(kind)} level={int(level)} size={_format_float(size)}"]

    for p in points:
        lines.append(f"v {_format_float(p.x)} {_format_float(p.y)} {_format_float(p.z)}")

    for face in faces:
        lines.append(f"f {face.v1 + 1} {face.v2 + 1} {face.v3 + 1}")

    return "\n".join(lines) + "\n"


def default_export_filename(request) -> str:
    """File name for an exported request, e.g. ``menger_sponge_level2_size3.0.obj``."""
    return (f"{_kind_name(request.kind)}_level{request.level}"
            f"_size{_format_float(request.size)}.obj")


def write_obj(filename: str, output, request) -> str:
    """
    Write a GenerationOutput for ``request`` to an OBJ file.

    Returns:
        The path written
    """
    text = export_obj(request.kind, request.level, request.size,
                      output.points, output.faces)

    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filename, 'w') as f:
        f.write(text)

    return filename


def read_obj_header(text: str) -> Optional[Tuple[str, int, float]]:
    """
    Recover (kind, level, size) from an exported header comment.

    Returns None when the first line is not a fractal header.
    """
    first = text.lstrip().split('\n', 1)[0].strip()
    if not first.startswith('#'):
        return None

    parts = first[1:].split()
    if len(parts) != 3:
        return None

    kind = parts[0]
    fields = dict(p.split('=', 1) for p in parts[1:] if '=' in p)
    if 'level' not in fields or 'size' not in fields:
        return None

    try:
        return kind, int(fields['level']), float(fields['size'])
    except ValueError:
        return None


def _parse_face_index(token: str, n_vertices: int, line_no: int) -> int:
    # "i", "i/t", "i//n" and "i/t/n" all carry the vertex index first
    try:
        idx = int(token.split('/')[0])
    except ValueError:
        raise ValueError(f"Line {line_no}: invalid face index {token!r}")

    if idx == 0:
        raise ValueError(f"Line {line_no}: OBJ face indices are 1-based")
    if idx < 0:
        # Relative to the vertices read so far
        return n_vertices + idx
    return idx - 1


def parse_obj(lines: Union[str, Iterable[str]]) -> TriangleMesh:
    """
    Parse OBJ text into a TriangleMesh with 0-based indices.

    Comments, blank lines and records other than ``v``/``f`` are ignored.
    Polygons with more than three vertices are fan-triangulated.
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    vertices: List[List[float]] = []
    triangles: List[List[int]] = []

    for line_no, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue

        parts = line.split()
        record = parts[0]

        if record == 'v':
            if len(parts) < 4:
                raise ValueError(f"Line {line_no}: vertex needs 3 coordinates")
            try:
                vertices.append([float(parts[1]), float(parts[2]), float(parts[3])])
            except ValueError:
                raise ValueError(f"Line {line_no}: invalid vertex {line!r}")

        elif record == 'f':
            idx = [_parse_face_index(t, len(vertices), line_no) for t in parts[1:]]
            if len(idx) < 3:
                raise ValueError(f"Line {line_no}: face needs at least 3 vertices")
            for j in range(1, len(idx) - 1):
                triangles.append([idx[0], idx[j], idx[j + 1]])

    if not vertices:
        raise ValueError("No vertices found in OBJ data")

    n = len(vertices)
    for tri in triangles:
        if min(tri) < 0 or max(tri) >= n:
            raise ValueError(f"Face {tri} references a vertex outside 0..{n - 1}")

    return TriangleMesh.from_vertices_and_faces(
        np.array(vertices, dtype=np.float64),
        np.array(triangles, dtype=np.int64).reshape(-1, 3),
    )


def load_obj(filename: str) -> TriangleMesh:
    """Load mesh from an OBJ file."""
    with open(filename, 'r') as f:
        return parse_obj(f)


def load_mesh(filename: str) -> TriangleMesh:
    """
    Load mesh from file (auto-detect format).

    Supported formats:
        - .obj (Wavefront OBJ, triangles or polygons)

    Args:
        filename: Path to mesh file

    Returns:
        TriangleMesh object
    """
    ext = os.path.splitext(filename)[1].lower()

    if ext == '.obj':
        return load_obj(filename)
    else:
        raise ValueError(f"Unsupported file format: {ext}")
