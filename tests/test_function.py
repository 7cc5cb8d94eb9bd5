import math

import pytest

from SurfPlot.function import ScalarFunction, Undefined, is_defined, DEFAULT_EPSILON
from SurfPlot.vector import RealVector
from SurfPlot.errors import (
    ArityMismatchError,
    EvaluationRuleError,
    InvalidVariableListError,
)


@pytest.fixture
def f3():
    return ScalarFunction(["x", "y", "z"], "2*x + 2*y + 2 * z * z")


@pytest.mark.parametrize("vars", [[1, 2, 3], ["x", ""], "xy", ["x", "x"], [], ["1x"]])
def test_invalid_variable_list(vars):
    with pytest.raises(InvalidVariableListError):
        ScalarFunction(vars, "1")


def test_undeclared_variable_fails():
    with pytest.raises(EvaluationRuleError):
        ScalarFunction(["x"], "y")


def test_syntax_error_fails():
    with pytest.raises(EvaluationRuleError):
        ScalarFunction(["x"], "2 *")


def test_callable_with_wrong_arity_fails():
    with pytest.raises(EvaluationRuleError):
        ScalarFunction(["x", "y"], lambda x: x)


def test_non_rule_fails():
    with pytest.raises(EvaluationRuleError):
        ScalarFunction(["x"], 42)


def test_eval_at():
    f = ScalarFunction(["x"], "2*x")
    assert f.eval_at(1) == 2
    g = ScalarFunction(["u", "v"], "u * v")
    assert g.eval_at(2, 2) == 4
    assert g(3, 2) == 6
    assert isinstance(g.eval_at(2, 2), float)


def test_eval_at_callable():
    f = ScalarFunction(["x", "y"], lambda x, y: math.hypot(x, y))
    assert f.eval_at(3, 4) == 5


def test_eval_at_numpy_namespace():
    f = ScalarFunction(["x", "y"], "sqrt(x*x + y*y) + sin(0) + 0 * pi")
    assert f.eval_at(3, 4) == 5


def test_division_by_zero_is_undefined():
    f = ScalarFunction(["u"], "1/u")
    assert f.eval_at(0) is Undefined
    assert not is_defined(f.eval_at(0))
    assert f.eval_at(2) == 0.5


def test_non_finite_results_are_undefined():
    assert ScalarFunction(["u"], "-1/u").eval_at(0) is Undefined
    assert ScalarFunction(["u"], "sqrt(u)").eval_at(-1) is Undefined
    assert ScalarFunction(["u"], "log(u)").eval_at(0) is Undefined
    assert ScalarFunction(["u"], "exp(u)").eval_at(1000) is Undefined


def test_callable_domain_errors_are_undefined():
    f = ScalarFunction(["u"], lambda u: math.log(u))
    assert f.eval_at(-1) is Undefined
    g = ScalarFunction(["u"], lambda u: 1 / float(u))
    assert g.eval_at(0) is Undefined


def test_complex_results_are_undefined():
    f = ScalarFunction(["u", "v"], lambda u, v: float(u) ** 0.5 + v)
    assert f.eval_at(4, 1) == 3
    assert f.eval_at(-1, 0) is Undefined
    assert f.gradient_at(-1, 0) is Undefined


@pytest.mark.parametrize(
    "expr",
    [
        "().__class__.__base__.__subclasses__().__len__() + x",
        "x.real",
        "[x][0]",
        "__import__(\"os\")",
        "(lambda t: t)(x)",
        "_x + x",
    ],
)
def test_expression_rejects_non_arithmetic(expr):
    with pytest.raises(EvaluationRuleError):
        ScalarFunction(["x"], expr)


def test_expression_function_names():
    f = ScalarFunction(
        ["x", "y"], "atan2(y, x) + log10(100) + abs(-x) + max(x, y) + e - e"
    )
    assert f.eval_at(1, 0) == pytest.approx(0 + 2 + 1 + 1)


def test_variable_shadows_function_name():
    f = ScalarFunction(["e", "N"], "e * N")
    assert f.eval_at(2, 3) == 6


def test_eval_at_arity(f3):
    with pytest.raises(ArityMismatchError):
        f3.eval_at(1, 2)


def test_undefined_sentinel():
    assert repr(Undefined) == "Undefined"
    assert not Undefined
    assert is_defined(0.0)


def test_gradient_at(f3):
    v = f3.gradient_at(1, 2, 1)
    assert isinstance(v, RealVector)
    assert v.dims == 3
    assert abs(v.at(0) - 2) < 1e-4
    assert abs(v.at(1) - 2) < 1e-4
    assert abs(v.at(2) - 4) < 1e-4


def test_gradient_perturbs_only_one_axis():
    f = ScalarFunction(["x", "y"], "x * y")
    v = f.gradient_at(3, 5)
    assert abs(v.at(0) - 5) < 1e-4
    assert abs(v.at(1) - 3) < 1e-4


def test_gradient_custom_epsilon():
    f = ScalarFunction(["x"], "sin(x)")
    v = f.gradient_at(0.5, epsilon=1e-6)
    assert abs(v.at(0) - math.cos(0.5)) < 1e-8
    with pytest.raises(ValueError):
        f.gradient_at(0.5, epsilon=0)


def test_default_epsilon():
    assert DEFAULT_EPSILON == pytest.approx(2.220446049250313e-16 * 64)


def test_gradient_arity(f3):
    f3.gradient_at(1, 1, 1)
    with pytest.raises(ArityMismatchError):
        f3.gradient_at(2, 3)
    with pytest.raises(ArityMismatchError):
        f3.gradient_at(2, 3, 4, 4)


def test_gradient_undefined_near_singularity():
    f = ScalarFunction(["x", "y"], "sqrt(x) + y")
    assert f.eval_at(0, 1) == 1
    assert f.gradient_at(0, 1) is Undefined
    g = ScalarFunction(["x", "y"], "sqrt(y)")
    assert g.gradient_at(1, 0) is Undefined
    assert g.gradient_at(0, 1) is not Undefined


def test_gradient_non_finite_partial_is_undefined():
    # both sides finite but the difference overflows
    f = ScalarFunction(["x"], lambda x: 1e308 if x > 0 else -1e308)
    assert f.gradient_at(0.0) is Undefined


if __name__ == "__main__":
    test_gradient_at(ScalarFunction(["x", "y", "z"], "2*x + 2*y + 2 * z * z"))
