"""
Fractal Mesh - procedural fractal mesh generation.

This package generates indexed triangle meshes for Sierpinski tetrahedra,
Menger sponges and Sierpinski octahedra by recursive subdivision, welds
coincident vertices, and exports the result as OBJ text.
"""

from .mesh_io import (
    Point3,
    Face,
    TriangleMesh,
    BoundingBox3D,
    export_obj,
    write_obj,
    parse_obj,
    load_obj,
    load_mesh,
    read_obj_header,
    default_export_filename,
)
from .vertex_weld import (
    VertexWeldTable,
    GenerationOutput,
    WELD_PRECISION,
)
from .generators import (
    FractalKind,
    FractalRequest,
    MAX_LEVELS,
    DEFAULT_KIND,
    DEFAULT_LEVEL,
    DEFAULT_SIZE,
    generate,
    generate_fractal,
    generate_sierpinski_tetrahedron,
    generate_menger_sponge,
    generate_sierpinski_octahedron,
)
from .mesh_stats import (
    MeshStatistics,
    extract_mesh_statistics,
    print_statistics_summary,
)
from .dimension import (
    FractalDimensionResult,
    theoretical_dimension,
    estimate_box_dimension,
    analyze_fractal,
)

__version__ = "0.1.0"
__all__ = [
    # Mesh I/O
    "Point3",
    "Face",
    "TriangleMesh",
    "BoundingBox3D",
    "export_obj",
    "write_obj",
    "parse_obj",
    "load_obj",
    "load_mesh",
    "read_obj_header",
    "default_export_filename",
    # Welding
    "VertexWeldTable",
    "GenerationOutput",
    "WELD_PRECISION",
    # Generation
    "FractalKind",
    "FractalRequest",
    "MAX_LEVELS",
    "DEFAULT_KIND",
    "DEFAULT_LEVEL",
    "DEFAULT_SIZE",
    "generate",
    "generate_fractal",
    "generate_sierpinski_tetrahedron",
    "generate_menger_sponge",
    "generate_sierpinski_octahedron",
    # Statistics
    "MeshStatistics",
    "extract_mesh_statistics",
    "print_statistics_summary",
    # Dimension
    "FractalDimensionResult",
    "theoretical_dimension",
    "estimate_box_dimension",
    "analyze_fractal",
]
