"""
Surface Meshing
===============

This module converts a :class:`~SurfPlot.function.ScalarFunction` of two
variables into an indexed triangle mesh of its graph ``z = f(x, y)``.

The function is sampled on a regular ``N x N`` grid over the rectangle
spanned by the x and y bounds. Each grid vertex gets a position, a unit
normal derived from the numerical gradient, and the sampled value.
Vertices where the value or the gradient is :data:`Undefined` are kept
in the buffers with finite placeholders, but no triangle references
them: every quad of the grid is triangulated according to which of its
corners are defined, so the mesh ends exactly at the boundary of the
domain of definition.

Positions follow graphics conventions, with the xz plane as the floor
and y pointing up. A sample at ``(x, y)`` with value ``z`` is stored as
``(x, z, y)``.

Classes
-------
SurfaceMesh
    The mesh buffer set: positions, normals, values and triangle indices.
SurfaceMesher
    Samples a function and builds a :class:`SurfaceMesh`.
QualityOptions
    Typed dictionary with the sampling parameters.

Functions
---------
create_surface_mesh
    Functional shortcut for :class:`SurfaceMesher`.
export_surface_mesh
    Write a mesh to ``.vtk`` or any format supported by meshio.
"""

import logging
import math
import os
import pathlib
from collections.abc import Mapping
from typing import TypedDict

import gustaf as gus
import numpy as np
import torch
import vtk

import SurfPlot
from SurfPlot.errors import ArityMismatchError
from SurfPlot.function import DEFAULT_EPSILON, ScalarFunction, Undefined

logger = logging.getLogger(SurfPlot.__name__)

DEFAULT_RESOLUTION = 64


class QualityOptions(TypedDict, total=False):
    """Sampling parameters of a surface mesh.

    - `resolution` (int): number of grid vertices along each axis.
    - `epsilon` (float): step of the central difference used for normals.

    Example
    -------
    >>> options: QualityOptions = {"resolution": 32, "epsilon": 1e-8}
    """

    resolution: int
    epsilon: float


# Triangles of a quad, keyed by the safety of (idx1, idx2, idx3). Each
# triangle lists corner numbers 0-3 of the quad. The newest vertex idx0
# has to be safe for any entry to apply.
_QUAD_CASES = {
    (True, True, True): ((0, 2, 1), (0, 3, 2)),
    (False, True, True): ((0, 3, 2),),
    (True, False, True): ((0, 3, 1),),
    (True, True, False): ((0, 2, 1),),
    (False, False, True): (),
    (False, True, False): (),
    (True, False, False): (),
    (False, False, False): (),
}


def _readonly(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


class SurfaceMesh:
    """Indexed triangle mesh sampled from a function of two variables.

    Parameters
    ----------
    positions : np.ndarray
        Vertex positions of shape (N*N, 3).
    normals : np.ndarray
        Unit vertex normals of shape (N*N, 3).
    values : np.ndarray
        Function value per vertex, shape (N*N,).
    indices : np.ndarray
        Triangles as vertex index triples, shape (M, 3).
    safe : np.ndarray
        Boolean mask of shape (N*N,), True where the vertex is defined.
    resolution : int
        Number of grid vertices along each axis.

    All arrays are stored read-only.
    """

    def __init__(self, positions, normals, values, indices, safe, resolution):
        self.positions = _readonly(np.asarray(positions, dtype=np.float64))
        self.normals = _readonly(np.asarray(normals, dtype=np.float64))
        self.values = _readonly(np.asarray(values, dtype=np.float64))
        self.indices = _readonly(
            np.asarray(indices, dtype=np.int64).reshape(-1, 3)
        )
        self.safe = _readonly(np.asarray(safe, dtype=bool))
        self.resolution = resolution

        n = resolution * resolution
        if not (
            self.positions.shape == (n, 3)
            and self.normals.shape == (n, 3)
            and self.values.shape == (n,)
            and self.safe.shape == (n,)
        ):
            raise ValueError(
                f"Vertex buffers do not match a {resolution}x{resolution} grid: "
                f"positions {self.positions.shape}, normals {self.normals.shape}, "
                f"values {self.values.shape}, safe {self.safe.shape}"
            )
        if self.indices.size and (
            self.indices.min() < 0 or self.indices.max() >= n
        ):
            raise ValueError("Triangle indices reference vertices outside the grid.")

    @property
    def n_vertices(self) -> int:
        return self.positions.shape[0]

    @property
    def n_triangles(self) -> int:
        return self.indices.shape[0]

    def as_buffer_dict(self) -> dict:
        """Flat attribute arrays in the layout used for vertex buffer upload.

        Returns
        -------
        dict
            ``{"position": {"numComponents": 3, "data": ...}, ...}`` with
            the keys ``position``, ``normal``, ``value`` and ``indices``.
        """
        return {
            "indices": {"numComponents": 3, "data": self.indices.reshape(-1)},
            "position": {"numComponents": 3, "data": self.positions.reshape(-1)},
            "normal": {"numComponents": 3, "data": self.normals.reshape(-1)},
            "value": {"numComponents": 1, "data": self.values},
        }

    def to_gus(self) -> gus.Faces:
        faces = gus.Faces(self.positions.copy(), self.indices.copy())
        faces.vertex_data["normals"] = self.normals.copy()
        faces.vertex_data["values"] = self.values.reshape(-1, 1).copy()
        return faces

    def to_torch(self, device="cpu") -> dict[str, torch.Tensor]:
        return {
            "positions": torch.tensor(self.positions, device=device),
            "normals": torch.tensor(self.normals, device=device),
            "values": torch.tensor(self.values, device=device),
            "indices": torch.tensor(self.indices, device=device),
        }


def as_bounds_array(bounds) -> np.ndarray:
    """Normalizes bounds to an array [[x0, y0, z0], [x1, y1, z1]].

    The z extent is optional and filled with zeros when missing.
    """
    if isinstance(bounds, Mapping):
        if "min" not in bounds or "max" not in bounds:
            raise ValueError("Bounds mapping needs 'min' and 'max' entries.")
        bounds = [bounds["min"], bounds["max"]]
    try:
        array = np.asarray(bounds, dtype=np.float64)
    except (TypeError, ValueError) as err:
        raise ValueError(f"Bounds are not numeric: {bounds!r}") from err
    if array.shape == (2, 2):
        array = np.hstack([array, np.zeros((2, 1))])
    if array.shape != (2, 3):
        raise ValueError(
            f"Bounds should be of shape (2,3) or (2,2), got {array.shape}"
        )
    if not np.all(np.isfinite(array)):
        raise ValueError(f"Bounds must be finite, got {array.tolist()}")
    return array


class SurfaceMesher:
    """Samples a function of two variables into a :class:`SurfaceMesh`.

    Parameters
    ----------
    resolution : int, default 64
        Number of grid vertices along each axis, at least 2.
    epsilon : float, default DEFAULT_EPSILON
        Step of the central difference used for the normals.

    Examples
    --------
    >>> from SurfPlot.function import ScalarFunction
    >>> from SurfPlot.mesh import SurfaceMesher
    >>> f = ScalarFunction(["x", "y"], "x + y")
    >>> mesh = SurfaceMesher(resolution=8)(f, [[-1, -1, -1], [1, 1, 1]])
    >>> mesh.n_triangles
    98
    """

    def __init__(self, resolution: int = DEFAULT_RESOLUTION, epsilon=DEFAULT_EPSILON):
        if isinstance(resolution, bool) or not isinstance(
            resolution, (int, np.integer)
        ):
            raise ValueError(f"resolution must be an integer, got {resolution!r}")
        if resolution < 2:
            raise ValueError(f"resolution must be at least 2, got {resolution}")
        if not (math.isfinite(epsilon) and epsilon > 0):
            raise ValueError(f"epsilon must be positive and finite, got {epsilon}")
        self.resolution = int(resolution)
        self.epsilon = float(epsilon)

    @classmethod
    def from_options(cls, options: QualityOptions | None = None):
        options = options or {}
        return cls(
            resolution=options.get("resolution", DEFAULT_RESOLUTION),
            epsilon=options.get("epsilon", DEFAULT_EPSILON),
        )

    def __call__(self, func: ScalarFunction, bounds) -> SurfaceMesh:
        return self.build(func, bounds)

    def build(self, func: ScalarFunction, bounds) -> SurfaceMesh:
        """Samples ``func`` over the xy rectangle of ``bounds``.

        Parameters
        ----------
        func : ScalarFunction
            Function of exactly two variables.
        bounds : array-like or mapping
            ``[[x0, y0, z0], [x1, y1, z1]]``, ``[[x0, y0], [x1, y1]]`` or
            ``{"min": ..., "max": ...}``. The z extent does not affect
            sampling.

        Returns
        -------
        SurfaceMesh

        Raises
        ------
        TypeError
            If ``func`` is not a ScalarFunction.
        ArityMismatchError
            If ``func`` does not have exactly two variables.
        ValueError
            If ``bounds`` are malformed.
        """
        if not isinstance(func, ScalarFunction):
            raise TypeError(f"Expected a ScalarFunction, got {type(func).__name__}.")
        if func.n_vars != 2:
            raise ArityMismatchError(
                f"Surface meshes need a function from R^2, got one from "
                f"R^{func.n_vars} ({list(func.vars)})."
            )
        bounds = as_bounds_array(bounds)
        N = self.resolution
        x_min, y_min = bounds[0, 0], bounds[0, 1]
        x_step = abs(bounds[1, 0] - bounds[0, 0]) / N
        y_step = abs(bounds[1, 1] - bounds[0, 1]) / N
        logger.debug(
            f"Sampling {func!r} on a {N}x{N} grid over "
            f"x in [{bounds[0, 0]}, {bounds[1, 0]}], y in [{bounds[0, 1]}, {bounds[1, 1]}]"
        )

        positions = np.zeros((N * N, 3), dtype=np.float64)
        normals = np.zeros((N * N, 3), dtype=np.float64)
        values = np.zeros(N * N, dtype=np.float64)
        safe = np.zeros(N * N, dtype=bool)
        indices = []

        previous_z = 0.0
        for y in range(N):
            pos_y = y_min + y_step * y
            for x in range(N):
                pos_x = x_min + x_step * x
                idx0 = y * N + x

                pos_z = func.eval_at(pos_x, pos_y)
                grad = func.gradient_at(pos_x, pos_y, epsilon=self.epsilon)

                if pos_z is Undefined or grad is Undefined:
                    # kept in the buffers, never referenced by a triangle
                    values[idx0] = previous_z
                    positions[idx0] = (pos_x, 0.0 if pos_z is Undefined else pos_z, 0.0)
                    normals[idx0] = (0.0, 1.0, 0.0)
                    continue

                previous_z = pos_z
                safe[idx0] = True
                values[idx0] = pos_z
                positions[idx0] = (pos_x, pos_z, pos_y)
                gx, gy = grad.at(0), grad.at(1)
                # hypot does not overflow for steep gradients
                length = math.hypot(gx, -1.0, gy)
                normals[idx0] = (gx / length, -1.0 / length, gy / length)

                if x == 0 or y == 0:
                    continue
                corners = (
                    idx0,
                    (y - 1) * N + x,
                    (y - 1) * N + (x - 1),
                    y * N + (x - 1),
                )
                case = (safe[corners[1]], safe[corners[2]], safe[corners[3]])
                for triangle in _QUAD_CASES[tuple(bool(s) for s in case)]:
                    indices.append([corners[c] for c in triangle])

        mesh = SurfaceMesh(
            positions,
            normals,
            values,
            np.array(indices, dtype=np.int64).reshape(-1, 3),
            safe,
            N,
        )
        logger.info(
            f"Generated surface mesh with {mesh.n_vertices} vertices, "
            f"{mesh.n_triangles} triangles, {int((~safe).sum())} undefined vertices"
        )
        return mesh


def create_surface_mesh(
    func: ScalarFunction,
    bounds,
    resolution: int = DEFAULT_RESOLUTION,
    epsilon=DEFAULT_EPSILON,
) -> SurfaceMesh:
    return SurfaceMesher(resolution=resolution, epsilon=epsilon).build(func, bounds)


def _export_surface_mesh_vtk(mesh: SurfaceMesh, filename):
    vtk_points = vtk.vtkPoints()
    for v in mesh.positions:
        vtk_points.InsertNextPoint(v.tolist())

    vtk_cells = vtk.vtkCellArray()
    for f in mesh.indices:
        triangle = vtk.vtkTriangle()
        triangle.GetPointIds().SetId(0, int(f[0]))
        triangle.GetPointIds().SetId(1, int(f[1]))
        triangle.GetPointIds().SetId(2, int(f[2]))
        vtk_cells.InsertNextCell(triangle)

    polydata = vtk.vtkPolyData()
    polydata.SetPoints(vtk_points)
    polydata.SetPolys(vtk_cells)

    normals = vtk.vtkDoubleArray()
    normals.SetNumberOfComponents(3)
    normals.SetName("normals")
    for n in mesh.normals:
        normals.InsertNextTuple(n.tolist())
    polydata.GetPointData().SetNormals(normals)

    values = vtk.vtkDoubleArray()
    values.SetName("values")
    values.SetNumberOfValues(mesh.n_vertices)
    for i, val in enumerate(mesh.values):
        values.SetValue(i, float(val))
    polydata.GetPointData().SetScalars(values)

    writer = vtk.vtkPolyDataWriter()
    writer.SetFileName(str(filename))
    writer.SetInputData(polydata)
    writer.Write()


def export_surface_mesh(
    filename: str | os.PathLike[str],
    mesh: SurfaceMesh,
):
    """Writes a surface mesh to disk.

    ``.vtk`` files are written as legacy poly data with the normals and
    values as point data. Every other suffix is handed to meshio through
    gustaf.
    """
    export_filename = pathlib.Path(filename)
    if not os.path.isdir(export_filename.parent):
        os.makedirs(export_filename.parent)
    logger.debug(
        f"Exporting mesh with {mesh.n_triangles} triangles, "
        f"{mesh.n_vertices} vertices to {export_filename}"
    )
    ext = export_filename.suffix.lower()
    match ext:
        case ".vtk":
            _export_surface_mesh_vtk(mesh, export_filename)
        case _:
            gus.io.meshio.export(str(export_filename), mesh.to_gus())
