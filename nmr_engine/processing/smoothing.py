# nmr_engine/processing/smoothing.py
import logging; log = logging.getLogger(__name__)
from typing import Optional, Dict, Any, Callable, Union
import numpy as np; import pandas as pd
from scipy.signal import savgol_filter
from scipy.ndimage import uniform_filter1d
from ..core._exceptions import ProcessingError, ConfigurationError, DataNotFoundError

# Legacy config filter codes
FILTER_TYPES: Dict[int, str] = {0: 'none', 1: 'boxcar', 2: 'savitzky_golay'}


def _passes(params: Dict[str, Any]) -> int:
    passes = params.get('passes', 1)
    if not isinstance(passes, (int, np.integer)) or passes < 0: raise ConfigurationError(f"'passes' must be a non-negative integer, got {passes!r}.")
    return int(passes)


def _smooth_boxcar(y: Union[np.ndarray, pd.Series], params: Dict[str, Any]) -> np.ndarray:
    window_size = params.get('window_size', params.get('filter_size'))
    if window_size is None: raise ConfigurationError("Boxcar requires 'window_size'.")
    if not isinstance(window_size, (int, np.integer)) or window_size <= 0: raise ConfigurationError("'window_size' must be positive integer.")
    if window_size % 2 == 0: raise ConfigurationError(f"Boxcar 'window_size' ({window_size}) must be odd.")
    passes = _passes(params); n_points = len(y)
    if window_size > n_points: log.warning(f"Boxcar 'window_size' ({window_size}) > data points ({n_points}).")
    log.debug(f"Applying Boxcar: window={window_size}, passes={passes}")
    result = np.asarray(y, dtype=float).copy()
    try:
        for _ in range(passes): result = uniform_filter1d(result, size=int(window_size), mode='mirror')
        return result
    except Exception as e: raise ProcessingError(f"Boxcar filter error: {e}") from e


def _smooth_savitzky_golay(y: Union[np.ndarray, pd.Series], params: Dict[str, Any]) -> np.ndarray:
    window_length = params.get('window_length', params.get('filter_size')); polyorder = params.get('polyorder', 2)
    if window_length is None: raise ConfigurationError("SavGol requires 'window_length'.")
    if not isinstance(window_length, (int, np.integer)) or not isinstance(polyorder, (int, np.integer)): raise ConfigurationError("SavGol params must be integers.")
    if window_length <= 0 or polyorder < 0: raise ConfigurationError("Invalid SavGol window/order values.")
    if window_length % 2 == 0: raise ConfigurationError(f"SavGol 'window_length' ({window_length}) must be odd.")
    if polyorder >= window_length: raise ConfigurationError(f"SavGol 'polyorder' ({polyorder}) must be < 'window_length' ({window_length}).")
    n_points = len(y)
    if window_length > n_points: raise ConfigurationError(f"SavGol 'window_length' ({window_length}) > data points ({n_points}).")
    passes = _passes(params)
    log.debug(f"Applying SavGol: window={window_length}, order={polyorder}, passes={passes}")
    result = np.asarray(y, dtype=float).copy()
    try:
        for _ in range(passes): result = savgol_filter(result, window_length=int(window_length), polyorder=int(polyorder), mode='mirror')
        return result
    except Exception as e: raise ProcessingError(f"SavGol filter error: {e}") from e


SMOOTHING_FUNCTIONS: Dict[str, Callable] = {"savitzky_golay": _smooth_savitzky_golay, "savgol": _smooth_savitzky_golay, "sg": _smooth_savitzky_golay,
                                            "boxcar": _smooth_boxcar, "moving_average": _smooth_boxcar}


def smooth_spectrum(data: pd.DataFrame, method: str, params: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
    if data is None or not all(col in data.columns for col in ['shift', 'intensity']): raise DataNotFoundError("Invalid data for smoothing.")
    if data.empty: log.warning("Input data empty."); return pd.DataFrame(columns=['shift', 'intensity'])
    method_lower = method.lower(); params = params or {}
    if method_lower == 'none': log.info("Filtering disabled."); return data[['shift', 'intensity']].copy()
    if method_lower not in SMOOTHING_FUNCTIONS: raise ConfigurationError(f"Unknown smoothing method: '{method}'. Available: {list(SMOOTHING_FUNCTIONS.keys())}")
    smoothing_func = SMOOTHING_FUNCTIONS[method_lower]; intensity_data = data['intensity'].values
    log.info(f"Applying smoothing: '{method}'...")
    try:
        smoothed_intensity = smoothing_func(intensity_data, params)
        if smoothed_intensity is None or len(smoothed_intensity) != len(data): raise ProcessingError(f"Smoothing '{method}' returned invalid output.")
        if not np.all(np.isfinite(smoothed_intensity)): nan_count = np.sum(~np.isfinite(smoothed_intensity)); log.warning(f"Smoothed intensity has {nan_count} non-finite values.")
        smoothed_data_df = pd.DataFrame({'shift': data['shift'].values, 'intensity': smoothed_intensity}, index=data.index)
        log.info(f"Smoothing '{method}' successful.")
        return smoothed_data_df
    except (ConfigurationError, DataNotFoundError, ProcessingError) as e: log.error(f"Smoothing failed: {e}"); raise
    except Exception as e: log.exception(f"Unexpected smoothing error ('{method}'): {e}"); raise ProcessingError(f"Unexpected smoothing error: {e}") from e


def smoothing_for_filter_type(filter_type: int, filter_size: int, filter_passes: int):
    """Translates legacy config filter fields into a (method, params) pair for smooth_spectrum."""
    if filter_type not in FILTER_TYPES: raise ConfigurationError(f"Unknown filter type: {filter_type}. Available: {FILTER_TYPES}")
    method = FILTER_TYPES[filter_type]
    if method == 'none': return method, {}
    return method, {'filter_size': int(filter_size), 'passes': int(filter_passes)}
