# nmr_engine/processing/__init__.py
from .spline import CubicSpline
from .integration import newton_cotes, romberg, adaptive_simpson, gauss_legendre, integrate, integrate_all_methods, INTEGRATION_METHODS
from .peak_detection import Peak, detect_peaks, integrate_peaks, peaks_to_dataframe
from .smoothing import smooth_spectrum
from .calibration import find_tms_shift, apply_tms_calibration

__all__ = ['CubicSpline', 'newton_cotes', 'romberg', 'adaptive_simpson', 'gauss_legendre', 'integrate', 'integrate_all_methods',
           'INTEGRATION_METHODS', 'Peak', 'detect_peaks', 'integrate_peaks', 'peaks_to_dataframe', 'smooth_spectrum',
           'find_tms_shift', 'apply_tms_calibration']
