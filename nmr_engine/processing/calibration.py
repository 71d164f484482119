# nmr_engine/processing/calibration.py
import logging; log = logging.getLogger(__name__)
from typing import Tuple
import numpy as np; import pandas as pd
from ..core._exceptions import DataNotFoundError


def find_tms_shift(x_data, y_data, baseline: float) -> float:
    """
    Locates the TMS reference peak: the local maximum above the baseline
    with the most positive shift. Falls back to the first sample when no
    sample qualifies.
    """
    x = np.asarray(x_data, dtype=float); y = np.asarray(y_data, dtype=float)
    if x.size == 0: raise DataNotFoundError("No data to process for TMS shift.")
    n = x.size
    tms_location = x[0]; tms_height = y[0]
    for i in range(n):
        if y[i] <= baseline: continue
        is_local_max = not (i > 0 and y[i] < y[i - 1]) and not (i < n - 1 and y[i] < y[i + 1])
        if is_local_max and (x[i] > tms_location or y[i] > tms_height) and x[i] >= tms_location:
            tms_location = x[i]; tms_height = y[i]
    log.info(f"TMS peak found at original shift {tms_location:.6f} ppm (height {tms_height:.4g}).")
    return float(tms_location)


def apply_tms_calibration(data: pd.DataFrame, baseline: float) -> Tuple[pd.DataFrame, float]:
    if data is None or not all(col in data.columns for col in ['shift', 'intensity']): raise DataNotFoundError("Invalid data for TMS calibration.")
    if data.empty: raise DataNotFoundError("No data to process for TMS shift.")
    shift = find_tms_shift(data['shift'].values, data['intensity'].values, baseline)
    calibrated = data[['shift', 'intensity']].copy()
    calibrated['shift'] = calibrated['shift'] - shift
    log.info(f"Applied shift of {shift:.6f} ppm for TMS calibration.")
    return calibrated, shift
