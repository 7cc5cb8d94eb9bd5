"""
Plot Definitions
================

A plot definition owns the function being plotted and tells interested
parties, typically the rendering layer, when it changes.

:class:`SurfacePlot` additionally keeps the last mesh built for it, so a
renderer can ask for the mesh every frame and only pay for sampling when
the function, the bounds or the quality options change.
"""

import logging

import numpy as np

import SurfPlot
from SurfPlot.errors import ArityMismatchError
from SurfPlot.function import ScalarFunction
from SurfPlot.mesh import QualityOptions, SurfaceMesh, SurfaceMesher, as_bounds_array

logger = logging.getLogger(SurfPlot.__name__)


class PlotDefinition:
    """Base class for anything that can be plotted."""

    def __init__(self):
        self._update_callback = None

    def set_on_update(self, fn, ctx=None):
        """Sets a callback that will be called with this object and ctx as
        arguments, whenever a meaningful property of the plot changes.

        Passing None removes the callback.
        """
        if fn is None:
            self._update_callback = None
        else:
            self._update_callback = lambda plot: fn(plot, ctx)

    def notify_update(self) -> bool:
        """Calls any callback set with set_on_update.

        Returns
        -------
        bool
            True if a callback was called, False otherwise.
        """
        if self._update_callback is not None:
            self._update_callback(self)
            return True
        return False


def _check_surface_function(func):
    if not isinstance(func, ScalarFunction):
        raise TypeError(f"Expected a ScalarFunction, got {type(func).__name__}.")
    if func.n_vars != 2:
        raise ArityMismatchError(
            f"A surface plot needs a function from R^2, got one from R^{func.n_vars}."
        )
    return func


class SurfacePlot(PlotDefinition):
    """Plot of the graph of a function of two variables.

    Parameters
    ----------
    func : ScalarFunction
        Function with exactly two variables.

    Examples
    --------
    >>> from SurfPlot.function import ScalarFunction
    >>> plot = SurfacePlot(ScalarFunction(["x", "y"], "x * y"))
    >>> mesh = plot.mesh([[-1, -1, -1], [1, 1, 1]], {"resolution": 16})
    >>> mesh is plot.mesh([[-1, -1, -1], [1, 1, 1]], {"resolution": 16})
    True
    """

    def __init__(self, func: ScalarFunction):
        super().__init__()
        self._func = _check_surface_function(func)
        self._mesh = None
        self._mesh_key = None

    @property
    def function(self) -> ScalarFunction:
        return self._func

    @function.setter
    def function(self, func: ScalarFunction):
        self._func = _check_surface_function(func)
        self.invalidate()
        self.notify_update()

    def invalidate(self):
        self._mesh = None
        self._mesh_key = None

    def mesh(self, bounds, quality_options: QualityOptions | None = None) -> SurfaceMesh:
        """Returns the mesh for ``bounds``, rebuilding it only when needed."""
        mesher = SurfaceMesher.from_options(quality_options)
        bounds_array = as_bounds_array(bounds)
        key = (
            tuple(np.ravel(bounds_array[:, :2]).tolist()),
            mesher.resolution,
            mesher.epsilon,
        )
        if self._mesh is not None and self._mesh_key == key:
            return self._mesh
        logger.debug(f"Rebuilding mesh for {self._func!r}")
        self._mesh = mesher.build(self._func, bounds_array)
        self._mesh_key = key
        return self._mesh
