import numpy as np
import pytest
from numpy.polynomial import Polynomial
from scipy.interpolate import CubicSpline as ScipyCubicSpline

from nmr_engine.processing.spline import CubicSpline
from nmr_engine.processing import integration
from nmr_engine.processing.integration import (
    newton_cotes, romberg, adaptive_simpson, gauss_legendre, integrate, integrate_all_methods, resolve_method
)
from nmr_engine.core._exceptions import ValidationError, UnsupportedSelectorError, IntegrationError

ALL_METHODS = [newton_cotes, romberg, adaptive_simpson, gauss_legendre]


class PolynomialCurve:
    """Stands in for a fitted spline so the rules can be checked against exact integrals."""

    is_computed = True

    def __init__(self, coefficients):
        self.poly = Polynomial(coefficients)

    def evaluate(self, x):
        return self.poly(np.asarray(x, dtype=float))

    def exact(self, a, b):
        antiderivative = self.poly.integ()
        return antiderivative(b) - antiderivative(a)


@pytest.fixture
def sine_spline():
    x = np.linspace(0.0, np.pi, 30)
    y = np.sin(x)
    return CubicSpline(x, y), ScipyCubicSpline(x, y, bc_type='natural')


@pytest.mark.parametrize("rule", ALL_METHODS)
def test_rules_are_exact_for_cubics(rule):
    curve = PolynomialCurve([1.0, -2.0, 3.0, 0.5])
    assert rule(curve, 0.0, 2.0, 1e-10) == pytest.approx(curve.exact(0.0, 2.0), rel=1e-12)


@pytest.mark.parametrize("rule", [newton_cotes, romberg, adaptive_simpson])
def test_iterative_rules_agree_with_spline_integral(rule, sine_spline):
    ours, reference = sine_spline
    expected = reference.integrate(0.2, 2.9)
    assert rule(ours, 0.2, 2.9, 1e-10) == pytest.approx(expected, abs=1e-8)


def test_gauss_legendre_agrees_with_spline_integral(sine_spline):
    ours, reference = sine_spline
    assert gauss_legendre(ours, 0.2, 2.9) == pytest.approx(reference.integrate(0.2, 2.9), abs=1e-6)


def test_gauss_legendre_exact_within_one_spline_piece():
    x = np.linspace(0.0, 5.0, 11)
    ours = CubicSpline(x, x ** 2)
    reference = ScipyCubicSpline(x, x ** 2, bc_type='natural')
    assert gauss_legendre(ours, 1.0, 1.5) == pytest.approx(reference.integrate(1.0, 1.5), rel=1e-13)


def test_gauss_legendre_exact_up_to_degree_63():
    coefficients = np.zeros(64)
    coefficients[[0, 62, 63]] = 1.0
    curve = PolynomialCurve(coefficients)
    assert gauss_legendre(curve, 0.0, 1.0) == pytest.approx(1.0 + 1.0 / 63 + 1.0 / 64, rel=1e-11)


def test_gauss_legendre_ignores_tolerance():
    curve = PolynomialCurve([0.0, 0.0, 1.0])
    assert gauss_legendre(curve, 0.0, 3.0, 1e-2) == gauss_legendre(curve, 0.0, 3.0, 1e-12)


def test_gauss_legendre_constants_are_read_only():
    with pytest.raises(ValueError):
        integration._GL64_WEIGHTS[0] = 1.0
    assert integration._GL64_WEIGHTS.sum() == pytest.approx(1.0, rel=1e-13)


def test_newton_cotes_returns_last_estimate_when_tolerance_unreachable():
    curve = PolynomialCurve([0.0, 0.0, 1.0])
    assert newton_cotes(curve, 0.0, 1.0, 0.0) == pytest.approx(1.0 / 3.0, rel=1e-12)


@pytest.mark.parametrize("rule", ALL_METHODS)
def test_rules_reject_uncomputed_spline(rule):
    with pytest.raises(ValidationError):
        rule(CubicSpline(), 0.0, 1.0, 1e-8)


@pytest.mark.parametrize("selector, expected", [
    (0, 0), (1, 1), (2, 2), (3, 3), ("romberg", 1), ("Gauss_Legendre", 3), ("2", 2), (np.int64(3), 3)
])
def test_resolve_method(selector, expected):
    assert resolve_method(selector) == expected


@pytest.mark.parametrize("selector", [99, -1, "bogus", True, 1.5, None])
def test_unknown_selector_raises(selector):
    with pytest.raises(UnsupportedSelectorError):
        resolve_method(selector)


def test_unsupported_selector_is_an_integration_error(sine_spline):
    with pytest.raises(IntegrationError):
        integrate(sine_spline[0], 0.0, 1.0, method=99)


def test_integrate_dispatches_by_selector(sine_spline):
    ours, reference = sine_spline
    expected = reference.integrate(0.5, 2.5)
    for method in range(4):
        assert integrate(ours, 0.5, 2.5, method=method, tolerance=1e-10) == pytest.approx(expected, abs=1e-6)


def test_integrate_all_methods_reports_every_method(sine_spline):
    results = integrate_all_methods(sine_spline[0], 0.5, 2.5, 1e-10)
    assert list(results) == ["Newton-Cotes", "Romberg", "Adaptive Quadrature", "Gauss-Legendre Quadrature"]
    values = np.array(list(results.values()))
    assert values.max() - values.min() < 1e-6
