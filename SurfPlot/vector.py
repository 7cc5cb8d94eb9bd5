import math
import operator

import numpy as np

from SurfPlot.errors import (
    InvalidDimensionError,
    InvalidComponentError,
    IndexOutOfRangeError,
)


def _format_component(value: float) -> str:
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


class RealVector:
    """Immutable vector in R^n.

    The dimension is dictated by the number of inputs. Every input needs
    to be float convertible and finite.

    Examples
    --------
    >>> v = RealVector(1, 2, 3)
    >>> v.dims
    3
    >>> str(v)
    '(1, 2, 3)'
    """

    __slots__ = ("_values",)

    def __init__(self, *values):
        if len(values) < 1:
            raise InvalidDimensionError("Empty vectors are not allowed.")
        components = []
        for k, v in enumerate(values):
            try:
                num = float(v)
            except (TypeError, ValueError) as err:
                raise InvalidComponentError(
                    f"Component {k} ({v!r}) is not float convertible."
                ) from err
            if not math.isfinite(num):
                raise InvalidComponentError(f"Component {k} is not finite: {num}.")
            components.append(num)
        values_array = np.array(components, dtype=np.float64)
        values_array.flags.writeable = False
        self._values = values_array

    @property
    def dims(self) -> int:
        return self._values.shape[0]

    def at(self, k: int) -> float:
        """Gets element k in the vector. Raises if k is out of range."""
        k = operator.index(k)
        if not 0 <= k < self.dims:
            raise IndexOutOfRangeError(
                f"Index {k} out of range for a vector of dimension {self.dims}."
            )
        return float(self._values[k])

    def __getitem__(self, k: int) -> float:
        return self.at(k)

    def __len__(self):
        return self.dims

    def __iter__(self):
        return (float(v) for v in self._values)

    def __eq__(self, other):
        if not isinstance(other, RealVector):
            return NotImplemented
        return np.array_equal(self._values, other._values)

    def __hash__(self):
        return hash(tuple(self._values.tolist()))

    def to_numpy(self) -> np.ndarray:
        return self._values.copy()

    def __str__(self):
        return "(" + ", ".join(_format_component(float(v)) for v in self._values) + ")"

    def __repr__(self):
        return f"RealVector{self}"
