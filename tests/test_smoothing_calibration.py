import numpy as np
import pandas as pd
import pytest

from nmr_engine.processing.smoothing import smooth_spectrum, smoothing_for_filter_type
from nmr_engine.processing.calibration import find_tms_shift, apply_tms_calibration
from nmr_engine.core._exceptions import ConfigurationError, DataNotFoundError


def _spectrum(intensity):
    intensity = np.asarray(intensity, dtype=float)
    return pd.DataFrame({'shift': np.arange(intensity.size, dtype=float), 'intensity': intensity})


def test_boxcar_single_pass():
    out = smooth_spectrum(_spectrum([0, 0, 3, 0, 0]), 'boxcar', {'window_size': 3, 'passes': 1})
    np.testing.assert_allclose(out['intensity'].values, [0, 1, 1, 1, 0])
    np.testing.assert_array_equal(out['shift'].values, np.arange(5.0))


def test_boxcar_zero_passes_leaves_data_unchanged():
    data = _spectrum([1, 4, 2, 8, 5])
    out = smooth_spectrum(data, 'boxcar', {'filter_size': 3, 'passes': 0})
    np.testing.assert_array_equal(out['intensity'].values, data['intensity'].values)


def test_savitzky_golay_five_point_weights():
    impulse = np.zeros(11)
    impulse[5] = 35.0
    out = smooth_spectrum(_spectrum(impulse), 'savitzky_golay', {'window_length': 5, 'passes': 1})
    np.testing.assert_allclose(out['intensity'].values[3:8], [-3, 12, 17, 12, -3], atol=1e-10)


def test_savitzky_golay_preserves_quadratic_interior():
    y = np.arange(12, dtype=float) ** 2
    out = smooth_spectrum(_spectrum(y), 'sg', {'filter_size': 5, 'passes': 2})
    np.testing.assert_allclose(out['intensity'].values[4:-4], y[4:-4], atol=1e-9)


def test_none_method_returns_copy():
    data = _spectrum([1, 2, 3])
    out = smooth_spectrum(data, 'none')
    pd.testing.assert_frame_equal(out, data)
    assert out is not data


@pytest.mark.parametrize("method, params", [
    ('boxcar', {'window_size': 4}),
    ('savitzky_golay', {'window_length': 6}),
    ('savitzky_golay', {'window_length': 5, 'polyorder': 5}),
    ('boxcar', {'window_size': 3, 'passes': -1}),
    ('gaussian', {}),
])
def test_invalid_smoothing_requests(method, params):
    with pytest.raises(ConfigurationError):
        smooth_spectrum(_spectrum(np.ones(20)), method, params)


def test_smoothing_requires_spectrum_columns():
    with pytest.raises(DataNotFoundError):
        smooth_spectrum(pd.DataFrame({'x': [1.0]}), 'boxcar', {'window_size': 3})


def test_filter_type_translation():
    assert smoothing_for_filter_type(0, 5, 2) == ('none', {})
    assert smoothing_for_filter_type(1, 5, 2) == ('boxcar', {'filter_size': 5, 'passes': 2})
    assert smoothing_for_filter_type(2, 11, 1) == ('savitzky_golay', {'filter_size': 11, 'passes': 1})
    with pytest.raises(ConfigurationError):
        smoothing_for_filter_type(7, 5, 1)


def test_tms_is_the_most_positive_local_maximum_above_baseline():
    x = [-1.0, 0.0, 1.0, 2.0, 3.0, 4.0]
    y = [0.0, 9.0, 0.0, 3.0, 0.0, 0.0]
    assert find_tms_shift(x, y, baseline=1.0) == 2.0


def test_tms_ignores_maxima_below_baseline():
    x = [-1.0, 0.0, 1.0, 2.0, 3.0]
    y = [0.0, 9.0, 0.0, 0.5, 0.0]
    assert find_tms_shift(x, y, baseline=1.0) == 0.0


def test_tms_falls_back_to_first_sample():
    assert find_tms_shift([3.0, 4.0, 5.0], [0.0, 0.1, 0.0], baseline=1.0) == 3.0


def test_apply_tms_calibration_shifts_axis():
    data = pd.DataFrame({'shift': [1.0, 2.0, 3.0, 4.0], 'intensity': [0.0, 5.0, 0.0, 0.0]})
    calibrated, shift = apply_tms_calibration(data, baseline=1.0)
    assert shift == 2.0
    np.testing.assert_array_equal(calibrated['shift'].values, [-1.0, 0.0, 1.0, 2.0])
    np.testing.assert_array_equal(data['shift'].values, [1.0, 2.0, 3.0, 4.0])


def test_apply_tms_calibration_rejects_empty_data():
    with pytest.raises(DataNotFoundError):
        apply_tms_calibration(pd.DataFrame(columns=['shift', 'intensity']), baseline=1.0)
