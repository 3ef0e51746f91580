"""
Fractal dimension of generated meshes.

Each family is self-similar, so its similarity dimension is exact:
D = log(n_copies) / log(1 / ratio). For a generated mesh the dimension is
estimated by box counting over the welded vertex set: N(δ) ~ δ^(-D), where
N(δ) is the number of grid cells of size δ holding at least one vertex.

    Sierpinski tetrahedron: log 4 / log 2 = 2.0
    Menger sponge: log 20 / log 3 ≈ 2.7268
    Sierpinski octahedron: log 6 / log 2 ≈ 2.5850
"""

import numpy as np
from typing import List, Optional
from dataclasses import dataclass
from scipy import stats
from .mesh_io import BoundingBox3D
from .generators import FractalKind, FractalRequest, generate_fractal


# (copies per step, scale ratio per step)
_SIMILARITY = {
    FractalKind.SIERPINSKI_TETRAHEDRON: (4, 2),
    FractalKind.MENGER_SPONGE: (20, 3),
    FractalKind.SIERPINSKI_OCTAHEDRON: (6, 2),
}


@dataclass
class BoxCountResult:
    """Result of a single box count at a specific scale."""
    delta: float  # Cell size
    n_boxes: int  # Number of occupied cells
    grid_dims: tuple  # Grid dimensions (nx, ny, nz)


@dataclass
class FractalDimensionResult:
    """Result of fractal dimension calculation."""
    dimension: float  # Estimated fractal dimension
    r_squared: float  # R² of log-log regression
    std_error: float  # Standard error of dimension estimate
    intercept: float  # Intercept of log-log regression
    deltas: List[float]  # Cell sizes used
    n_boxes: List[int]  # Box counts at each scale
    log_inv_delta: np.ndarray  # log(1/δ) values
    log_n_boxes: np.ndarray  # log(N) values


def theoretical_dimension(kind) -> float:
    """Exact similarity dimension of a fractal family."""
    copies, ratio = _SIMILARITY[FractalKind.parse(kind)]
    return float(np.log(copies) / np.log(ratio))


def count_boxes(vertices: np.ndarray, delta: float,
                domain: Optional[BoundingBox3D] = None) -> BoxCountResult:
    """
    Count grid cells of size delta that contain at least one vertex.

    The grid starts at the domain's minimum corner; points on an upper
    cell boundary belong to the next cell, except on the domain's upper
    faces, which close the last cell.
    """
    vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    if domain is None:
        domain = BoundingBox3D.from_points(vertices)

    origin = np.array([domain.min_x, domain.min_y, domain.min_z])
    nx = max(1, int(np.ceil(domain.width / delta)))
    ny = max(1, int(np.ceil(domain.height / delta)))
    nz = max(1, int(np.ceil(domain.depth / delta)))

    cells = np.floor((vertices - origin) / delta).astype(np.int64)
    cells = np.minimum(cells, [nx - 1, ny - 1, nz - 1])
    occupied = np.unique(cells, axis=0)

    return BoxCountResult(
        delta=delta,
        n_boxes=len(occupied),
        grid_dims=(nx, ny, nz)
    )


def estimate_box_dimension(vertices,
                           initial_delta: Optional[float] = None,
                           delta_factor: float = 2.0,
                           num_steps: int = 6,
                           min_delta: Optional[float] = None,
                           verbose: bool = False) -> FractalDimensionResult:
    """
    Estimate the box-counting dimension of a point set.

    The dimension is the slope of log(N) vs log(1/δ).

    Args:
        vertices: (N, 3) array of points (e.g. ``GenerationOutput.vertex_buffer``)
        initial_delta: Starting cell size (default: max extent / 4)
        delta_factor: Factor to reduce delta by each step (default: 2)
        num_steps: Number of scales to analyze (default: 6)
        min_delta: Smallest cell size (default: max extent / 1000)
        verbose: Print each box count

    Returns:
        FractalDimensionResult with dimension estimate and statistics
    """
    vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    if len(vertices) == 0:
        raise ValueError("Cannot estimate dimension of an empty point set")

    domain = BoundingBox3D.from_points(vertices)
    extent = domain.max_dimension

    if initial_delta is None:
        initial_delta = extent / 4
    if min_delta is None:
        min_delta = extent / 1000

    # Geometric progression of cell sizes
    deltas = []
    delta = initial_delta
    for _ in range(num_steps):
        if delta < min_delta:
            break
        deltas.append(delta)
        delta = delta / delta_factor

    if len(deltas) < 3:
        raise ValueError(f"Insufficient scale range: only {len(deltas)} valid delta values")

    n_boxes = []
    for delta in deltas:
        result = count_boxes(vertices, delta, domain)
        n_boxes.append(result.n_boxes)
        if verbose:
            print(f"  δ = {delta:.6f}: {result.n_boxes} cells "
                  f"(grid: {result.grid_dims[0]}×{result.grid_dims[1]}×{result.grid_dims[2]})")

    deltas = np.array(deltas)
    n_boxes = np.array(n_boxes)

    # Linear regression in log-log space
    log_inv_delta = np.log(1.0 / deltas)
    log_n_boxes = np.log(n_boxes)

    slope, intercept, r_value, p_value, std_err = stats.linregress(
        log_inv_delta, log_n_boxes
    )

    return FractalDimensionResult(
        dimension=float(slope),
        r_squared=float(r_value ** 2),
        std_error=float(std_err),
        intercept=float(intercept),
        deltas=deltas.tolist(),
        n_boxes=n_boxes.tolist(),
        log_inv_delta=log_inv_delta,
        log_n_boxes=log_n_boxes,
    )


def analyze_fractal(request: FractalRequest,
                    num_steps: Optional[int] = None,
                    verbose: bool = True) -> FractalDimensionResult:
    """
    Generate a fractal and estimate its dimension.

    Cell sizes follow the family's own scale ratio, from a quarter of the
    extent down to the finest level generated.

    Args:
        request: Fractal to generate
        num_steps: Number of scales (default: one per level, at least 3)
        verbose: Print progress and a comparison with the exact value

    Returns:
        FractalDimensionResult
    """
    output = generate_fractal(request, verbose=verbose)
    _, ratio = _SIMILARITY[request.kind]

    if num_steps is None:
        num_steps = max(3, request.level)

    if verbose:
        print(f"\nEstimating box-counting dimension...")

    vertices = np.asarray(output.vertex_buffer, dtype=np.float64).reshape(-1, 3)
    result = estimate_box_dimension(
        vertices,
        initial_delta=BoundingBox3D.from_points(vertices).max_dimension / ratio,
        delta_factor=float(ratio),
        num_steps=num_steps,
        verbose=verbose,
    )

    if verbose:
        print(f"\nResults:")
        print(f"  Estimated dimension: {result.dimension:.4f}")
        print(f"  Exact dimension:     {theoretical_dimension(request.kind):.4f}")
        print(f"  R²: {result.r_squared:.6f}")

    return result
