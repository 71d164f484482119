import numpy as np
import pytest
from scipy.interpolate import CubicSpline as ScipyCubicSpline

from nmr_engine.processing.spline import CubicSpline
from nmr_engine.core._exceptions import ValidationError


@pytest.fixture
def wavy_samples():
    x = np.linspace(0.0, 10.0, 21)
    return x, np.sin(x) + 0.1 * x


def test_spline_passes_through_nodes(wavy_samples):
    x, y = wavy_samples
    spline = CubicSpline().compute(x, y)
    assert spline.is_computed
    assert spline.num_nodes == 21
    np.testing.assert_allclose(spline.evaluate(x), y, atol=1e-12)


def test_spline_matches_scipy_natural_spline(wavy_samples):
    x, y = wavy_samples
    ours = CubicSpline(x, y)
    reference = ScipyCubicSpline(x, y, bc_type='natural')
    xs = np.linspace(-0.5, 10.5, 777)
    np.testing.assert_allclose(ours(xs), reference(xs), rtol=1e-9, atol=1e-9)
    np.testing.assert_allclose(ours.evaluate_derivative(xs), reference(xs, 1), rtol=1e-9, atol=1e-9)
    np.testing.assert_allclose(ours.evaluate_second_derivative(xs), reference(xs, 2), rtol=1e-8, atol=1e-8)


def test_first_and_second_derivatives_continuous_at_interior_nodes(wavy_samples):
    x, y = wavy_samples
    coeffs = CubicSpline(x, y).coefficients
    h = (coeffs['x_end'] - coeffs['x_start']).values
    b, c, d = coeffs['b'].values, coeffs['c'].values, coeffs['d'].values
    left_slope = b[:-1] + 2 * c[:-1] * h[:-1] + 3 * d[:-1] * h[:-1] ** 2
    left_curvature = 2 * c[:-1] + 6 * d[:-1] * h[:-1]
    np.testing.assert_allclose(left_slope, b[1:], atol=1e-9)
    np.testing.assert_allclose(left_curvature, 2 * c[1:], atol=1e-9)


def test_second_derivative_vanishes_at_end_nodes(wavy_samples):
    x, y = wavy_samples
    spline = CubicSpline(x, y)
    assert spline.evaluate_second_derivative(x[0]) == pytest.approx(0.0, abs=1e-12)
    assert spline.evaluate_second_derivative(x[-1]) == pytest.approx(0.0, abs=1e-9)


def test_two_points_is_linear_interpolation():
    spline = CubicSpline([0.0, 2.0], [1.0, 5.0])
    assert spline.evaluate(1.0) == pytest.approx(3.0)
    assert spline.evaluate(3.0) == pytest.approx(7.0)
    assert spline.evaluate_derivative(0.5) == pytest.approx(2.0)
    assert spline.evaluate_second_derivative(1.5) == pytest.approx(0.0)


def test_scalar_query_returns_float_and_array_query_returns_array(wavy_samples):
    spline = CubicSpline(*wavy_samples)
    assert isinstance(spline.evaluate(1.3), float)
    out = spline.evaluate(np.array([1.0, 2.0, 3.0]))
    assert isinstance(out, np.ndarray) and out.shape == (3,)


@pytest.mark.parametrize("x, y", [
    ([0.0, 1.0, 2.0], [1.0, 2.0]),
    ([1.0], [1.0]),
    ([], []),
    ([0.0, 1.0, 1.0], [0.0, 1.0, 2.0]),
    ([0.0, 2.0, 1.0], [0.0, 1.0, 2.0]),
    ([0.0, np.nan, 2.0], [0.0, 1.0, 2.0]),
])
def test_invalid_samples_are_rejected(x, y):
    spline = CubicSpline()
    with pytest.raises(ValidationError):
        spline.compute(x, y)
    assert not spline.is_computed


def test_failed_recompute_keeps_previous_model(wavy_samples):
    x, y = wavy_samples
    spline = CubicSpline(x, y)
    before = spline.evaluate(np.linspace(0, 10, 50))
    with pytest.raises(ValidationError):
        spline.compute([0.0, 0.0], [1.0, 1.0])
    assert spline.is_computed
    assert spline.num_nodes == 21
    np.testing.assert_array_equal(spline.evaluate(np.linspace(0, 10, 50)), before)


def test_uncomputed_spline_returns_neutral_values():
    spline = CubicSpline()
    assert not spline.is_computed
    assert spline.evaluate(1.0) == 0.0
    assert spline.evaluate_derivative(1.0) == 0.0
    assert spline.evaluate_second_derivative(1.0) == 0.0
    np.testing.assert_array_equal(spline.evaluate(np.array([1.0, 2.0])), [0.0, 0.0])
    assert spline.find_crossings(0.5, 0.0, 1.0) == []
    assert spline.x_range is None
    assert spline.sample().empty


def test_find_crossings_of_symmetric_bump():
    spline = CubicSpline([0.0, 1.0, 2.0, 3.0, 4.0], [0.0, 0.5, 1.0, 0.5, 0.0])
    crossings = spline.find_crossings(0.5, -0.3, 4.3)
    assert len(crossings) == 2
    np.testing.assert_allclose(crossings, [1.0, 3.0], atol=1e-6)


def test_find_crossings_returns_empty_when_curve_never_reaches_target():
    spline = CubicSpline([0.0, 1.0, 2.0], [0.0, 1.0, 0.0])
    assert spline.find_crossings(10.0, 0.0, 2.0) == []


def test_nodes_view_is_read_only(wavy_samples):
    spline = CubicSpline(*wavy_samples)
    with pytest.raises(ValueError):
        spline.nodes[0] = 42.0


def test_sample_grid(wavy_samples):
    spline = CubicSpline(*wavy_samples)
    curve = spline.sample(num_points=2000)
    assert list(curve.columns) == ['shift', 'intensity']
    assert len(curve) == 2000
    assert curve['shift'].iloc[0] == pytest.approx(0.0)
    assert curve['shift'].iloc[-1] == pytest.approx(10.0)
