"""
Recursive fractal mesh generators.

Three families are supported, each built by recursive subdivision down to
level 0 where a base solid is emitted:

    Sierpinski tetrahedron: 4 corner sub-tetrahedra per step, D = 2
    Menger sponge: 20 of 27 sub-cubes per step, D = log 20 / log 3
    Sierpinski octahedron: 6 vertex sub-octahedra per step, D = log 6 / log 2

Every point goes through a VertexWeldTable, so corners shared between
neighbouring branches become a single vertex.
"""

import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union
from .mesh_io import Point3
from .vertex_weld import VertexWeldTable, GenerationOutput, WELD_PRECISION


class FractalKind(Enum):
    """Supported fractal families."""
    SIERPINSKI_TETRAHEDRON = "sierpinski_tetrahedron"
    MENGER_SPONGE = "menger_sponge"
    SIERPINSKI_OCTAHEDRON = "sierpinski_octahedron"

    @classmethod
    def parse(cls, value: Union[str, 'FractalKind']) -> 'FractalKind':
        """Accept an enum member, its value or its name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace('-', '_')
        for kind in cls:
            if text in (kind.value, kind.name.lower()):
                return kind
        names = ", ".join(k.value for k in cls)
        raise ValueError(f"Unknown fractal kind {value!r} (expected one of: {names})")


# Exponential growth makes anything deeper impractical
MAX_LEVELS: Dict[FractalKind, int] = {
    FractalKind.SIERPINSKI_TETRAHEDRON: 10,
    FractalKind.MENGER_SPONGE: 10,
    FractalKind.SIERPINSKI_OCTAHEDRON: 10,
}

DEFAULT_KIND = FractalKind.SIERPINSKI_TETRAHEDRON
DEFAULT_LEVEL = 2
DEFAULT_SIZE = 5.1


@dataclass(frozen=True)
class FractalRequest:
    """
    Validated generation parameters.

    Attributes:
        kind: Fractal family
        level: Recursion depth, 0 is the unsubdivided solid
        size: Half-extent (tetrahedron, octahedron) or side length (sponge)
    """
    kind: FractalKind
    level: int
    size: float

    def __post_init__(self):
        object.__setattr__(self, 'kind', FractalKind.parse(self.kind))

        if isinstance(self.level, bool) or not isinstance(self.level, numbers.Integral):
            raise ValueError(f"Level must be an integer, got {self.level!r}")
        object.__setattr__(self, 'level', int(self.level))
        if self.level < 0:
            raise ValueError(f"Level must be >= 0, got {self.level}")
        max_level = MAX_LEVELS[self.kind]
        if self.level > max_level:
            raise ValueError(f"Level {self.level} exceeds the maximum of "
                             f"{max_level} for {self.kind.value}")

        try:
            size = float(self.size)
        except (TypeError, ValueError):
            raise ValueError(f"Size must be a number, got {self.size!r}")
        if not math.isfinite(size) or size <= 0:
            raise ValueError(f"Size must be positive and finite, got {self.size!r}")
        if not math.isfinite(size * 10 ** WELD_PRECISION):
            raise ValueError(f"Size {size!r} is too large to weld at "
                             f"{WELD_PRECISION} decimal places")
        object.__setattr__(self, 'size', size)

        # Distinct corners closer than two weld steps may share a key
        min_feature = 2 * 10 ** -WELD_PRECISION
        if self.min_feature < min_feature:
            raise ValueError(f"Size {size!r} at level {self.level} gives "
                             f"{self.kind.value} features of {self.min_feature:.3g}, "
                             f"below the weld resolution of {min_feature:.3g}")

    @property
    def min_feature(self) -> float:
        """Smallest coordinate gap between distinct corners of the finest cells."""
        if self.kind is FractalKind.SIERPINSKI_TETRAHEDRON:
            return 2 * self.size / 2 ** self.level
        if self.kind is FractalKind.MENGER_SPONGE:
            return self.size / 3 ** self.level
        return self.size / 2 ** self.level

    @property
    def expected_faces(self) -> int:
        """Face count implied by the recursion (welding never removes faces)."""
        if self.kind is FractalKind.SIERPINSKI_TETRAHEDRON:
            return 4 * 4 ** self.level
        if self.kind is FractalKind.MENGER_SPONGE:
            return 12 * 20 ** self.level
        return 8 * 6 ** self.level


# ----------------------------------------------------------------------
# Sierpinski tetrahedron
# ----------------------------------------------------------------------

def _midpoint(a: Point3, b: Point3) -> Point3:
    return (a + b).scaled(0.5)


def _subdivide_tetrahedron(p1: Point3, p2: Point3, p3: Point3, p4: Point3,
                           level: int, table: VertexWeldTable) -> None:
    if level == 0:
        i1 = table.lookup_or_insert(p1)
        i2 = table.lookup_or_insert(p2)
        i3 = table.lookup_or_insert(p3)
        i4 = table.lookup_or_insert(p4)

        table.add_face(i1, i3, i2)
        table.add_face(i1, i2, i4)
        table.add_face(i1, i4, i3)
        table.add_face(i2, i3, i4)
        return

    m12 = _midpoint(p1, p2)
    m13 = _midpoint(p1, p3)
    m14 = _midpoint(p1, p4)
    m23 = _midpoint(p2, p3)
    m24 = _midpoint(p2, p4)
    m34 = _midpoint(p3, p4)

    # Only the corner cells; the central octahedron is left empty
    _subdivide_tetrahedron(p1, m12, m13, m14, level - 1, table)
    _subdivide_tetrahedron(m12, p2, m23, m24, level - 1, table)
    _subdivide_tetrahedron(m13, m23, p3, m34, level - 1, table)
    _subdivide_tetrahedron(m14, m24, m34, p4, level - 1, table)


def generate_sierpinski_tetrahedron(level: int, size: float) -> GenerationOutput:
    """
    Generate a Sierpinski tetrahedron.

    The base solid is the regular tetrahedron inscribed in the cube
    [-size, size]^3.
    """
    s = size
    table = VertexWeldTable()
    _subdivide_tetrahedron(
        Point3(s, s, s),
        Point3(s, -s, -s),
        Point3(-s, s, -s),
        Point3(-s, -s, s),
        level, table,
    )
    return table.output


# ----------------------------------------------------------------------
# Menger sponge
# ----------------------------------------------------------------------

# Corner sign pattern, indices 0-3 on the +z face and 4-7 on the -z face
_CUBE_CORNERS = (
    (-1, -1, 1), (1, -1, 1), (1, 1, 1), (-1, 1, 1),
    (-1, -1, -1), (1, -1, -1), (1, 1, -1), (-1, 1, -1),
)

# Two triangles per face, counter-clockwise seen from outside
_CUBE_FACES = (
    (0, 1, 2), (0, 2, 3),  # front
    (4, 7, 6), (4, 6, 5),  # back
    (3, 2, 6), (3, 6, 7),  # top
    (0, 4, 5), (0, 5, 1),  # bottom
    (0, 3, 7), (0, 7, 4),  # left
    (1, 5, 6), (1, 6, 2),  # right
)


def _subdivide_cube(center: Point3, side: float, level: int,
                    table: VertexWeldTable) -> None:
    if level == 0:
        h = side / 2
        idx = [table.lookup_or_insert(center.offset(sx * h, sy * h, sz * h))
               for sx, sy, sz in _CUBE_CORNERS]
        for a, b, c in _CUBE_FACES:
            table.add_face(idx[a], idx[b], idx[c])
        return

    new_side = side / 3
    for i in (-1, 0, 1):
        for j in (-1, 0, 1):
            for k in (-1, 0, 1):
                zero_count = (i == 0) + (j == 0) + (k == 0)
                # Skip the 6 face-centre cubes and the body-centre cube
                if zero_count >= 2:
                    continue
                offset = Point3(i * new_side, j * new_side, k * new_side)
                _subdivide_cube(center + offset, new_side, level - 1, table)


def generate_menger_sponge(level: int, size: float) -> GenerationOutput:
    """Generate a Menger sponge of side ``size`` centred at the origin."""
    table = VertexWeldTable()
    _subdivide_cube(Point3(0.0, 0.0, 0.0), size, level, table)
    return table.output


# ----------------------------------------------------------------------
# Sierpinski octahedron
# ----------------------------------------------------------------------

# Vertex order: +y, -y, +x, -x, +z, -z
_OCTAHEDRON_DIRECTIONS = (
    (0, 1, 0), (0, -1, 0),
    (1, 0, 0), (-1, 0, 0),
    (0, 0, 1), (0, 0, -1),
)

_OCTAHEDRON_FACES = (
    (0, 4, 2), (0, 2, 5), (0, 5, 3), (0, 3, 4),  # upper pyramid
    (1, 2, 4), (1, 5, 2), (1, 3, 5), (1, 4, 3),  # lower pyramid
)


def _subdivide_octahedron(center: Point3, scale: float, level: int,
                          table: VertexWeldTable) -> None:
    if level == 0:
        idx = [table.lookup_or_insert(center.offset(dx * scale, dy * scale, dz * scale))
               for dx, dy, dz in _OCTAHEDRON_DIRECTIONS]
        for a, b, c in _OCTAHEDRON_FACES:
            table.add_face(idx[a], idx[b], idx[c])
        return

    new_scale = scale * 0.5
    for dx, dy, dz in _OCTAHEDRON_DIRECTIONS:
        # Already absolute; must not be offset by the parent centre again
        child = center.offset(dx * new_scale, dy * new_scale, dz * new_scale)
        _subdivide_octahedron(child, new_scale, level - 1, table)


def generate_sierpinski_octahedron(level: int, size: float) -> GenerationOutput:
    """Generate a Sierpinski octahedron with vertices at distance ``size``."""
    table = VertexWeldTable()
    _subdivide_octahedron(Point3(0.0, 0.0, 0.0), size, level, table)
    return table.output


_GENERATORS = {
    FractalKind.SIERPINSKI_TETRAHEDRON: generate_sierpinski_tetrahedron,
    FractalKind.MENGER_SPONGE: generate_menger_sponge,
    FractalKind.SIERPINSKI_OCTAHEDRON: generate_sierpinski_octahedron,
}


def generate_fractal(request: FractalRequest, verbose: bool = False) -> GenerationOutput:
    """
    Run the generator matching ``request.kind``.

    Args:
        request: Validated parameters
        verbose: Print a one-line summary when done

    Returns:
        A fresh GenerationOutput owned by the caller
    """
    if verbose:
        print(f"Generating {request.kind.value} "
              f"(level {request.level}, size {request.size})...", end=" ", flush=True)

    output = _GENERATORS[request.kind](request.level, request.size)

    if verbose:
        print(f"{output.n_points:,} vertices, {output.n_faces:,} faces")

    return output


def generate(kind: Union[str, FractalKind], level: int, size: float,
             verbose: bool = False) -> GenerationOutput:
    """Validate (kind, level, size) and generate the mesh."""
    return generate_fractal(FractalRequest(kind, level, size), verbose=verbose)
