"""
SurfPlot - Triangulated Surface Plots of Scalar Functions
=========================================================

SurfPlot turns a real valued function of two variables into an indexed
triangle mesh of its graph, ready to be handed to a renderer. Points where
the function is undefined or not finite are cut out of the mesh instead of
producing degenerate geometry.

Key Components
--------------

Functions
    - ``SurfPlot.function``: ``ScalarFunction``, evaluation and numerical gradient
    - ``SurfPlot.vector``: ``RealVector``, immutable vector in R^n

Meshes
    - ``SurfPlot.mesh``: grid sampling, triangulation and export
    - ``SurfPlot.plot``: plot definitions with update callbacks and mesh caching

Utilities
    - ``SurfPlot.errors``: exception types
    - ``SurfPlot.utils``: logging configuration

Examples
--------
Mesh the graph of 1/x, which is cut along x = 0::

    from SurfPlot.function import ScalarFunction
    from SurfPlot.mesh import create_surface_mesh

    f = ScalarFunction(["x", "y"], "1 / x")
    mesh = create_surface_mesh(f, [[-1, -1, -1], [1, 1, 1]], resolution=64)
    buffers = mesh.as_buffer_dict()
"""

import SurfPlot.utils

SurfPlot.utils.configure_logging()

__version__ = "0.1.0"
