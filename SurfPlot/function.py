"""
Scalar Functions
================

This module provides :class:`ScalarFunction`, the representation of a
real valued function f: R^n -> R used for plotting, together with the
:data:`Undefined` sentinel that stands in for non-finite results.

A function is defined by an ordered list of variable names and an
evaluation rule, which is either a Python expression string over those
names or a callable taking one positional argument per variable.

Expression strings are parsed with sympy and compiled to numpy code with
``sympy.lambdify``. Only arithmetic, names, literals and function calls
are accepted. Coordinates are passed as numpy scalars, so ``1/x`` at
``x = 0`` produces ``inf`` instead of raising. Whenever the raw result
is NaN or infinite, :meth:`ScalarFunction.eval_at` returns
:data:`Undefined`, so downstream code never sees a non-finite float.

Examples
--------
>>> from SurfPlot.function import ScalarFunction, Undefined
>>> f = ScalarFunction(["x", "y"], "x * y")
>>> f.eval_at(2, 3)
6.0
>>> ScalarFunction(["u"], "1/u").eval_at(0) is Undefined
True
>>> str(f.gradient_at(1, 2))
'(2, 1)'
"""

import ast
import logging
import math
from collections.abc import Sequence

import numpy as np
import sympy

import SurfPlot
from SurfPlot.errors import (
    ArityMismatchError,
    EvaluationRuleError,
    InvalidVariableListError,
)
from SurfPlot.vector import RealVector

logger = logging.getLogger(SurfPlot.__name__)

#: Step used for the central difference in :meth:`ScalarFunction.gradient_at`.
DEFAULT_EPSILON = float(np.finfo(np.float64).eps) * 64


class _UndefinedType:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "Undefined"

    def __reduce__(self):
        return (_UndefinedType, ())


#: Result of an evaluation whose value is NaN or infinite.
Undefined = _UndefinedType()


def is_defined(value) -> bool:
    return value is not Undefined


_EXPRESSION_NAMESPACE = {
    "asin": sympy.asin,
    "acos": sympy.acos,
    "atan": sympy.atan,
    "arcsin": sympy.asin,
    "arccos": sympy.acos,
    "arctan": sympy.atan,
    "atan2": sympy.atan2,
    "arctan2": sympy.atan2,
    "cbrt": sympy.cbrt,
    "log2": lambda x: sympy.log(x, 2),
    "log10": lambda x: sympy.log(x, 10),
    "abs": sympy.Abs,
    "ceil": sympy.ceiling,
    "hypot": lambda a, b: sympy.sqrt(a**2 + b**2),
    "min": sympy.Min,
    "max": sympy.Max,
    "minimum": sympy.Min,
    "maximum": sympy.Max,
    "e": sympy.E,
}


def _validate_vars(vars) -> tuple[str, ...]:
    if isinstance(vars, str) or not isinstance(vars, Sequence):
        raise InvalidVariableListError(
            f"vars needs to be a sequence of strings, got {type(vars).__name__}."
        )
    if len(vars) < 1:
        raise InvalidVariableListError("At least one variable is required.")
    for v in vars:
        if not isinstance(v, str):
            raise InvalidVariableListError(
                f"vars needs to be a sequence of strings, found {v!r}."
            )
        if not v.isidentifier():
            raise InvalidVariableListError(f"{v!r} is not a valid variable name.")
    if len(set(vars)) != len(vars):
        raise InvalidVariableListError(f"Variable names must be unique: {list(vars)}.")
    return tuple(vars)


_FORBIDDEN_NODES = (
    ast.Attribute,
    ast.Subscript,
    ast.Lambda,
    ast.ListComp,
    ast.SetComp,
    ast.DictComp,
    ast.GeneratorExp,
    ast.NamedExpr,
    ast.Starred,
)


def _check_expression_syntax(expr: str):
    """Rejects everything but arithmetic, names, literals and calls."""
    try:
        tree = ast.parse(expr.strip(), mode="eval")
    except SyntaxError as err:
        raise EvaluationRuleError(f"Invalid expression {expr!r}: {err.msg}") from err
    for node in ast.walk(tree):
        if isinstance(node, _FORBIDDEN_NODES):
            raise EvaluationRuleError(
                f"Invalid expression {expr!r}: {type(node).__name__} is not allowed"
            )
        if isinstance(node, ast.Name) and node.id.startswith("_"):
            raise EvaluationRuleError(
                f"Invalid expression {expr!r}: name {node.id!r} is not allowed"
            )


def _compile_expression(vars: tuple[str, ...], expr: str):
    _check_expression_syntax(expr)
    symbols = [sympy.Symbol(v) for v in vars]
    local_dict = dict(_EXPRESSION_NAMESPACE)
    local_dict.update(zip(vars, symbols))
    try:
        parsed = sympy.sympify(expr.strip(), locals=local_dict)
        # symbols missing from vars are left free and fail on the trial call
        return sympy.lambdify(symbols, parsed, modules="numpy")
    except (sympy.SympifyError, SyntaxError, TypeError, ValueError) as err:
        raise EvaluationRuleError(f"Invalid expression {expr!r}: {err}") from err


class ScalarFunction:
    """Represents a function f: R^n -> R.

    Parameters
    ----------
    vars : sequence of str
        Names of the variables, in argument order. Names must be unique
        identifiers.
    expr : str or callable
        Either an expression over ``vars`` (math such as ``sin``,
        ``sqrt`` or ``log`` is available) or a callable taking
        ``len(vars)`` positional arguments.

    Raises
    ------
    InvalidVariableListError
        If ``vars`` is not a sequence of unique identifier strings.
    EvaluationRuleError
        If the rule cannot be compiled, or raises when evaluated once at
        the point (1, ..., 1). An expression referencing a variable that
        is not in ``vars`` fails here.
    """

    def __init__(self, vars, expr):
        self._vars = _validate_vars(vars)
        if isinstance(expr, str):
            self._expr = expr
            self._rule = _compile_expression(self._vars, expr)
        elif callable(expr):
            self._expr = getattr(expr, "__name__", repr(expr))
            self._rule = expr
        else:
            raise EvaluationRuleError(
                f"expr needs to be a string or callable, got {type(expr).__name__}."
            )

        # raises if the names in vars do not match the rule
        trial_point = [np.float64(1.0)] * len(self._vars)
        try:
            with np.errstate(all="ignore"):
                float(self._rule(*trial_point))
        except Exception as err:
            raise EvaluationRuleError(
                f"Evaluating {self._expr!r} with variables {list(self._vars)} "
                f"failed: {err}"
            ) from err
        logger.debug(f"Created {self!r}")

    @property
    def vars(self) -> tuple[str, ...]:
        return self._vars

    @property
    def n_vars(self) -> int:
        return len(self._vars)

    @property
    def expr(self) -> str:
        return self._expr

    def _check_arity(self, coords):
        if len(coords) != self.n_vars:
            raise ArityMismatchError(
                f"This is a function from R^{self.n_vars}, "
                f"called as a function from R^{len(coords)}."
            )

    def _evaluate(self, coords):
        with np.errstate(all="ignore"):
            try:
                value = self._rule(*(np.float64(c) for c in coords))
            except (ArithmeticError, ValueError):
                return Undefined
        # complex results lie outside the real domain
        if isinstance(value, (complex, np.complexfloating)):
            return Undefined
        try:
            value = float(value)
        except TypeError:
            return Undefined
        if not math.isfinite(value):
            return Undefined
        return value

    def eval_at(self, *coords):
        """Evaluate the function at the given coordinates.

        Returns
        -------
        float or Undefined
            The function value, or :data:`Undefined` if it is NaN or
            infinite.
        """
        self._check_arity(coords)
        return self._evaluate(coords)

    __call__ = eval_at

    def gradient_at(self, *coords, epsilon=DEFAULT_EPSILON):
        """Numerically calculates the gradient at the given coordinates.

        Each partial derivative is estimated with a central difference,
        ``(f(x + eps e_k) - f(x - eps e_k)) / (2 eps)``, perturbing only
        component ``k``.

        Parameters
        ----------
        *coords : float
            The point, one coordinate per variable.
        epsilon : float, default DEFAULT_EPSILON
            Perturbation used for the central difference.

        Returns
        -------
        RealVector or Undefined
            The partial derivatives in the order of ``vars``, or
            :data:`Undefined` if the function is undefined at any of the
            perturbed points or a partial derivative is not finite.

        Raises
        ------
        ArityMismatchError
            If the number of coordinates differs from the number of
            variables.
        """
        self._check_arity(coords)
        if not (math.isfinite(epsilon) and epsilon > 0):
            raise ValueError(f"epsilon must be positive and finite, got {epsilon}")

        point = [float(c) for c in coords]
        grad = []
        for k in range(len(point)):
            p = list(point)
            p[k] = point[k] - epsilon
            v1 = self._evaluate(p)
            if v1 is Undefined:
                return Undefined
            p[k] = point[k] + epsilon
            v2 = self._evaluate(p)
            if v2 is Undefined:
                return Undefined
            grad.append((v2 - v1) / (2 * epsilon))

        if not all(math.isfinite(g) for g in grad):
            return Undefined
        return RealVector(*grad)

    def __repr__(self):
        return f"ScalarFunction({list(self._vars)!r}, {self._expr!r})"
