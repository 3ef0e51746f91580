#!/usr/bin/env python3
"""
Tests for the recursive fractal generators.

Checks closed-form counts, buffer invariants, determinism and the fixed
winding tables of each base solid.
"""

import numpy as np
import pytest
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fractalmesh.mesh_io import Point3, Face
from fractalmesh.generators import (
    FractalKind,
    FractalRequest,
    MAX_LEVELS,
    generate,
    generate_fractal,
    generate_sierpinski_tetrahedron,
    generate_menger_sponge,
    generate_sierpinski_octahedron,
)

ALL_KINDS = list(FractalKind)


def check_invariants(output):
    """Buffer lengths, index bounds and non-degenerate faces."""
    n = len(output.points)
    assert len(output.vertex_buffer) == 3 * n
    assert len(output.index_buffer) == 3 * len(output.faces)

    for i, face in enumerate(output.faces):
        assert output.index_buffer[3 * i:3 * i + 3] == [face.v1, face.v2, face.v3]
        assert 0 <= min(face.as_tuple()) and max(face.as_tuple()) < n
        assert len(set(face.as_tuple())) == 3, f"Degenerate face {face}"

    for i, p in enumerate(output.points):
        assert output.vertex_buffer[3 * i:3 * i + 3] == [p.x, p.y, p.z]

    # No two stored points share a weld key
    keys = {tuple(int(round(c * 1e5)) for c in p.as_tuple()) for p in output.points}
    assert len(keys) == n


def test_base_case_counts():
    """Level 0 emits the plain solid."""
    print("Testing level-0 counts...")

    expected = {
        FractalKind.SIERPINSKI_TETRAHEDRON: (4, 4),
        FractalKind.MENGER_SPONGE: (8, 12),
        FractalKind.SIERPINSKI_OCTAHEDRON: (6, 8),
    }
    for kind, (n_points, n_faces) in expected.items():
        out = generate(kind, 0, 1.0)
        assert (out.n_points, out.n_faces) == (n_points, n_faces), kind
        check_invariants(out)

    print("  PASSED!")


def test_invariants_all_kinds():
    """Invariants hold across kinds, levels and sizes."""
    for kind in ALL_KINDS:
        for level in range(3):
            for size in (0.5, 3.0, 5.1):
                out = generate(kind, level, size)
                check_invariants(out)
                assert out.n_faces == FractalRequest(kind, level, size).expected_faces


def test_tetrahedron_base_winding():
    out = generate_sierpinski_tetrahedron(0, 1.0)

    assert out.points == [
        Point3(1.0, 1.0, 1.0),
        Point3(1.0, -1.0, -1.0),
        Point3(-1.0, 1.0, -1.0),
        Point3(-1.0, -1.0, 1.0),
    ]
    assert [f.as_tuple() for f in out.faces] == [(0, 2, 1), (0, 1, 3), (0, 3, 2), (1, 2, 3)]


def test_tetrahedron_vertex_counts():
    """Corner cells meet only at vertices: 2 * 4^n + 2 points, 4^(n+1) faces."""
    for level in range(5):
        out = generate_sierpinski_tetrahedron(level, 1.0)
        assert out.n_points == 2 * 4 ** level + 2
        assert out.n_faces == 4 ** (level + 1)


def test_tetrahedron_level1_midpoints():
    out = generate_sierpinski_tetrahedron(1, 2.0)
    pts = {p.as_tuple() for p in out.points}

    # Edge midpoints of the base tetrahedron
    for m in [(2.0, 0.0, 0.0), (0.0, 2.0, 0.0), (0.0, 0.0, 2.0),
              (0.0, 0.0, -2.0), (0.0, -2.0, 0.0), (-2.0, 0.0, 0.0)]:
        assert m in pts

    # Centroid is never emitted
    assert (0.0, 0.0, 0.0) not in pts


def test_sponge_base_winding():
    out = generate_menger_sponge(0, 2.0)

    assert [p.as_tuple() for p in out.points] == [
        (-1.0, -1.0, 1.0), (1.0, -1.0, 1.0), (1.0, 1.0, 1.0), (-1.0, 1.0, 1.0),
        (-1.0, -1.0, -1.0), (1.0, -1.0, -1.0), (1.0, 1.0, -1.0), (-1.0, 1.0, -1.0),
    ]
    assert [f.as_tuple() for f in out.faces] == [
        (0, 1, 2), (0, 2, 3),
        (4, 7, 6), (4, 6, 5),
        (3, 2, 6), (3, 6, 7),
        (0, 4, 5), (0, 5, 1),
        (0, 3, 7), (0, 7, 4),
        (1, 5, 6), (1, 6, 2),
    ]


def test_sponge_level1():
    """20 sub-cubes of 12 faces each; shared corners are welded."""
    print("\nTesting Menger sponge level 1...")

    out = generate_menger_sponge(1, 3.0)
    assert out.n_faces == 240
    assert out.n_points < 160
    # Every point of the 4x4x4 corner lattice is used exactly once
    assert out.n_points == 64
    check_invariants(out)

    coords = np.array([p.as_tuple() for p in out.points])
    assert set(np.unique(coords)) == {-1.5, -0.5, 0.5, 1.5}

    print(f"  Vertices: {out.n_points}, Faces: {out.n_faces}")
    print("  PASSED!")


def test_sponge_skips_center_cubes():
    """Face-centre and body-centre cells contribute no geometry."""
    out = generate_menger_sponge(1, 3.0)
    mesh = out.to_triangle_mesh()
    centroids = mesh.vertices[mesh.triangles].mean(axis=1)

    # No triangle lies strictly inside the body-centre cube
    inside = np.all(np.abs(centroids) < 0.5 - 1e-9, axis=1)
    assert not inside.any()


def test_octahedron_base():
    out = generate_sierpinski_octahedron(0, 1.0)

    assert out.points == [
        Point3(0.0, 1.0, 0.0),
        Point3(0.0, -1.0, 0.0),
        Point3(1.0, 0.0, 0.0),
        Point3(-1.0, 0.0, 0.0),
        Point3(0.0, 0.0, 1.0),
        Point3(0.0, 0.0, -1.0),
    ]
    assert out.faces == [
        Face(0, 4, 2), Face(0, 2, 5), Face(0, 5, 3), Face(0, 3, 4),
        Face(1, 2, 4), Face(1, 5, 2), Face(1, 3, 5), Face(1, 4, 3),
    ]


def test_octahedron_level1():
    out = generate_sierpinski_octahedron(1, 1.0)
    # origin + 6 apexes + 12 shared equatorial points
    assert out.n_points == 19
    assert out.n_faces == 48


def test_octahedron_centers_not_double_offset():
    """Child centres are absolute, so nothing leaves the base octahedron."""
    for level in range(4):
        out = generate_sierpinski_octahedron(level, 1.0)
        coords = np.abs(np.array([p.as_tuple() for p in out.points]))
        assert coords.max() == pytest.approx(1.0)
        assert np.all(coords.sum(axis=1) <= 1.0 + 1e-9)


def test_determinism():
    """Identical requests give identical buffers."""
    print("\nTesting determinism...")

    for kind in ALL_KINDS:
        a = generate(kind, 2, 5.1)
        b = generate(kind, 2, 5.1)
        assert a.points == b.points
        assert a.faces == b.faces
        assert a.vertex_buffer == b.vertex_buffer
        assert a.index_buffer == b.index_buffer

    print("  PASSED!")


def test_outputs_are_independent():
    a = generate(FractalKind.MENGER_SPONGE, 0, 1.0)
    b = generate(FractalKind.MENGER_SPONGE, 0, 1.0)
    assert a is not b
    assert a.points is not b.points


def test_render_arrays():
    out = generate(FractalKind.SIERPINSKI_OCTAHEDRON, 1, 2.0)

    verts = out.vertex_array()
    idx = out.index_array()
    assert verts.shape == (out.n_points, 3) and verts.dtype == np.float32
    assert idx.shape == (out.n_faces, 3) and idx.dtype == np.uint32
    assert idx.max() < out.n_points


def test_bounding_sphere():
    out = generate_menger_sponge(0, 2.0)
    center, radius = out.bounding_sphere()
    assert center == pytest.approx((0.0, 0.0, 0.0))
    assert radius == pytest.approx(np.sqrt(3.0))


def test_request_validation():
    """Invalid parameters are rejected before generation."""
    with pytest.raises(ValueError):
        FractalRequest(FractalKind.MENGER_SPONGE, -1, 1.0)
    with pytest.raises(ValueError):
        FractalRequest(FractalKind.MENGER_SPONGE, 1.5, 1.0)
    with pytest.raises(ValueError):
        FractalRequest(FractalKind.MENGER_SPONGE, True, 1.0)
    with pytest.raises(ValueError):
        FractalRequest(FractalKind.MENGER_SPONGE,
                       MAX_LEVELS[FractalKind.MENGER_SPONGE] + 1, 1.0)
    for bad_size in (0.0, -2.0, float('inf'), float('nan'), "big"):
        with pytest.raises(ValueError):
            FractalRequest(FractalKind.SIERPINSKI_TETRAHEDRON, 1, bad_size)
    with pytest.raises(ValueError):
        generate("koch_snowflake", 1, 1.0)


def test_weld_resolution_limits():
    """Sizes whose corners would share weld keys are rejected up front."""
    with pytest.raises(ValueError):
        FractalRequest(FractalKind.SIERPINSKI_TETRAHEDRON, 0, 1e-6)
    with pytest.raises(ValueError):
        FractalRequest(FractalKind.SIERPINSKI_OCTAHEDRON, 0, 1e-5)
    # Leaf cubes of side 1 / 3^10 are finer than the weld step
    with pytest.raises(ValueError):
        FractalRequest(FractalKind.MENGER_SPONGE, 10, 1.0)
    with pytest.raises(ValueError):
        generate(FractalKind.SIERPINSKI_TETRAHEDRON, 4, 1e-4)

    # Smallest accepted sizes still give distinct corners
    for kind, size in [(FractalKind.SIERPINSKI_TETRAHEDRON, 1e-5),
                       (FractalKind.SIERPINSKI_OCTAHEDRON, 2e-5),
                       (FractalKind.MENGER_SPONGE, 2e-5)]:
        out = generate(kind, 0, size)
        assert out.n_points == {4: 4, 8: 6, 12: 8}[out.n_faces]
        check_invariants(out)


def test_oversized_requests_rejected():
    """Coordinates must stay finite once scaled into weld keys."""
    for kind in ALL_KINDS:
        with pytest.raises(ValueError):
            FractalRequest(kind, 0, 1e305)

    out = generate(FractalKind.MENGER_SPONGE, 0, 1e300)
    assert out.n_points == 8
    check_invariants(out)


def test_request_normalization():
    req = FractalRequest("Menger-Sponge", np.int64(2), 3)
    assert req.kind is FractalKind.MENGER_SPONGE
    assert req.level == 2 and isinstance(req.level, int)
    assert req.size == 3.0 and isinstance(req.size, float)

    assert FractalKind.parse("SIERPINSKI_OCTAHEDRON") is FractalKind.SIERPINSKI_OCTAHEDRON


def test_generate_fractal_verbose(capsys):
    out = generate_fractal(FractalRequest(FractalKind.SIERPINSKI_TETRAHEDRON, 1, 1.0),
                           verbose=True)
    captured = capsys.readouterr().out
    assert "sierpinski_tetrahedron" in captured
    assert f"{out.n_faces:,} faces" in captured


def run_all_tests():
    """Run the generator tests that need no fixtures."""
    print("=" * 60)
    print("Fractal Generator Tests")
    print("=" * 60)

    test_base_case_counts()
    test_invariants_all_kinds()
    test_tetrahedron_base_winding()
    test_tetrahedron_vertex_counts()
    test_tetrahedron_level1_midpoints()
    test_sponge_base_winding()
    test_sponge_level1()
    test_sponge_skips_center_cubes()
    test_octahedron_base()
    test_octahedron_level1()
    test_octahedron_centers_not_double_offset()
    test_determinism()
    test_outputs_are_independent()
    test_render_arrays()
    test_bounding_sphere()
    test_request_validation()
    test_weld_resolution_limits()
    test_oversized_requests_rejected()
    test_request_normalization()

    print("\n" + "=" * 60)
    print("All tests passed!")
    print("=" * 60)


if __name__ == "__main__":
    run_all_tests()
