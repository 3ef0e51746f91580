#!/usr/bin/env python3
"""
Generate a 3D fractal mesh and export it as an OBJ file.

Usage:
    # Default Sierpinski tetrahedron (level 2, size 5.1)
    python generate_fractal.py

    # Menger sponge, written to a chosen file
    python generate_fractal.py --kind menger_sponge --level 2 --size 3 -o sponge.obj

    # Summary only, with a box-counting dimension estimate
    python generate_fractal.py --kind sierpinski_octahedron --level 4 --no-export --dimension
"""

import argparse
import os
import sys
import time
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fractalmesh import (
    FractalKind,
    FractalRequest,
    DEFAULT_KIND,
    DEFAULT_LEVEL,
    DEFAULT_SIZE,
    generate_fractal,
    extract_mesh_statistics,
    print_statistics_summary,
    estimate_box_dimension,
    theoretical_dimension,
    write_obj,
    default_export_filename,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Generate a 3D fractal mesh and export it as OBJ.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('--kind', '-k', default=DEFAULT_KIND.value,
                        choices=[k.value for k in FractalKind],
                        help=f'Fractal family (default: {DEFAULT_KIND.value})')
    parser.add_argument('--level', '-l', type=int, default=DEFAULT_LEVEL,
                        help=f'Recursion level (default: {DEFAULT_LEVEL})')
    parser.add_argument('--size', '-s', type=float, default=DEFAULT_SIZE,
                        help=f'Base size (default: {DEFAULT_SIZE})')
    parser.add_argument('--output', '-o', type=str, default=None,
                        help='Output OBJ file (default: named after the parameters)')
    parser.add_argument('--no-export', action='store_true',
                        help='Skip writing the OBJ file')
    parser.add_argument('--dimension', action='store_true',
                        help='Estimate the box-counting dimension of the vertices')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Reduce output verbosity')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    verbose = not args.quiet

    try:
        request = FractalRequest(FractalKind.parse(args.kind), args.level, args.size)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if verbose:
        print("=" * 60)
        print("FRACTAL MESH GENERATION")
        print("=" * 60)
        print(f"Kind:  {request.kind.value}")
        print(f"Level: {request.level}")
        print(f"Size:  {request.size}")
        print()

    t0 = time.time()
    output = generate_fractal(request, verbose=verbose)
    gen_time = time.time() - t0

    if output.is_empty:
        print("Error: no geometry produced", file=sys.stderr)
        return 1

    if verbose:
        print(f"  ({gen_time:.2f}s)")
        print()
        print_statistics_summary(extract_mesh_statistics(output))

    if args.dimension:
        result = estimate_box_dimension(output.vertex_buffer)
        print(f"\nBox-counting dimension: {result.dimension:.4f} "
              f"(exact {theoretical_dimension(request.kind):.4f}, "
              f"R² = {result.r_squared:.5f})")

    if not args.no_export:
        path = args.output or default_export_filename(request)
        write_obj(path, output, request)
        if verbose:
            print(f"\nMesh saved to {path}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
