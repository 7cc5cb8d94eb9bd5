"""
Exceptions
==========

Contract violations raised by SurfPlot. Non-finite function values are
not errors; they are reported through :data:`SurfPlot.function.Undefined`.
"""


class SurfPlotError(Exception):
    """Base class of all SurfPlot errors."""


class InvalidDimensionError(SurfPlotError, ValueError):
    """A vector was constructed without components."""


class InvalidComponentError(SurfPlotError, ValueError):
    """A vector component is not a finite real number."""


class IndexOutOfRangeError(SurfPlotError, IndexError):
    """A vector component was accessed outside ``[0, dims)``."""


class InvalidVariableListError(SurfPlotError, TypeError):
    """The variable list of a function is malformed."""


class EvaluationRuleError(SurfPlotError, ValueError):
    """The evaluation rule could not be built or failed its trial call."""


class ArityMismatchError(SurfPlotError, ValueError):
    """A function was called with the wrong number of coordinates."""
