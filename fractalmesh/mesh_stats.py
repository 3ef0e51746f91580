"""
Geometric and topological summary of generated fractal meshes.

Used to sanity-check generator output before handing it to a renderer or
exporter: counts, extents, area, enclosed volume, edge-based topology
(closedness, orientation consistency) and connected pieces.
"""

import numpy as np
from typing import Dict, List, Tuple
from collections import Counter, defaultdict, deque
from dataclasses import dataclass
from .mesh_io import BoundingBox3D, TriangleMesh
from .vertex_weld import GenerationOutput


@dataclass
class MeshStatistics:
    """Summary of one generated mesh."""
    # Basic geometry
    n_vertices: int
    n_faces: int
    bbox: BoundingBox3D
    sphere_center: Tuple[float, float, float]
    sphere_radius: float
    surface_area: float
    signed_volume: float  # > 0 when faces wind counter-clockwise from outside

    # Topology
    n_edges: int  # Distinct undirected edges
    n_components: int  # Pieces connected through shared edges
    degenerate_faces: int  # Faces repeating a vertex index
    is_closed: bool  # Every edge bounds at least two faces
    is_manifold: bool  # Every edge bounds exactly two faces
    is_consistently_oriented: bool  # Each directed edge is matched by its reverse

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        d = dict(self.__dict__)
        d['bbox'] = self.bbox.dimensions
        return d


def _edge_counts(faces: np.ndarray) -> Counter:
    """Directed edge -> number of faces using it in that direction."""
    directed = Counter()
    for a, b, c in faces.tolist():
        directed[(a, b)] += 1
        directed[(b, c)] += 1
        directed[(c, a)] += 1
    return directed


def count_connected_components(faces: np.ndarray) -> int:
    """
    Count edge-connected pieces of a mesh using BFS.

    Two faces are adjacent if they share an edge (2 vertices); faces that
    only touch at a vertex belong to different pieces.
    """
    edge_to_faces: Dict[Tuple[int, int], List[int]] = defaultdict(list)
    for face_idx, (a, b, c) in enumerate(faces.tolist()):
        for u, v in ((a, b), (b, c), (c, a)):
            edge_to_faces[(min(u, v), max(u, v))].append(face_idx)

    adjacency: Dict[int, List[int]] = defaultdict(list)
    for shared in edge_to_faces.values():
        for i, f1 in enumerate(shared):
            for f2 in shared[i + 1:]:
                adjacency[f1].append(f2)
                adjacency[f2].append(f1)

    visited = set()
    n_components = 0

    for start in range(len(faces)):
        if start in visited:
            continue

        n_components += 1
        queue = deque([start])
        visited.add(start)

        while queue:
            face_idx = queue.popleft()
            for neighbor in adjacency.get(face_idx, []):
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

    return n_components


def extract_mesh_statistics(output: GenerationOutput) -> MeshStatistics:
    """
    Compute the statistics of a generated mesh.

    Args:
        output: Non-empty GenerationOutput

    Returns:
        MeshStatistics
    """
    if output.is_empty:
        raise ValueError("No geometry produced; nothing to summarize")

    mesh: TriangleMesh = output.to_triangle_mesh()
    center, radius = output.bounding_sphere()

    directed = _edge_counts(mesh.triangles)
    undirected = Counter()
    for (u, v), n in directed.items():
        undirected[(min(u, v), max(u, v))] += n

    oriented = all(directed.get((v, u), 0) == n for (u, v), n in directed.items())

    t = mesh.triangles
    degenerate = int(np.sum((t[:, 0] == t[:, 1]) | (t[:, 1] == t[:, 2]) | (t[:, 2] == t[:, 0])))

    return MeshStatistics(
        n_vertices=mesh.n_vertices,
        n_faces=mesh.n_triangles,
        bbox=mesh.bbox,
        sphere_center=center,
        sphere_radius=radius,
        surface_area=mesh.surface_area,
        signed_volume=mesh.signed_volume(),
        n_edges=len(undirected),
        n_components=count_connected_components(t),
        degenerate_faces=degenerate,
        is_closed=all(n >= 2 for n in undirected.values()),
        is_manifold=all(n == 2 for n in undirected.values()),
        is_consistently_oriented=oriented,
    )


def print_statistics_summary(stats: MeshStatistics) -> None:
    """Print a formatted summary of mesh statistics."""
    print("=" * 60)
    print("MESH SUMMARY")
    print("=" * 60)

    print(f"\nGeometry:")
    print(f"  Vertices:        {stats.n_vertices:,}")
    print(f"  Faces:           {stats.n_faces:,}")
    print(f"  Edges:           {stats.n_edges:,}")
    print(f"  Bounding box:    {stats.bbox.width:.4f} × {stats.bbox.height:.4f} × "
          f"{stats.bbox.depth:.4f}")
    print(f"  Bounding sphere: r = {stats.sphere_radius:.4f}")
    print(f"  Surface area:    {stats.surface_area:.4f}")
    print(f"  Signed volume:   {stats.signed_volume:.4f}")

    print(f"\nTopology:")
    print(f"  Components:      {stats.n_components:,}")
    print(f"  Closed:          {stats.is_closed}")
    print(f"  Manifold edges:  {stats.is_manifold}")
    print(f"  Oriented:        {stats.is_consistently_oriented}")
    if stats.degenerate_faces:
        print(f"  Degenerate:      {stats.degenerate_faces:,} faces")

    print("=" * 60)
