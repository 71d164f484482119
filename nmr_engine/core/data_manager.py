# nmr_engine/core/data_manager.py
import logging; log = logging.getLogger(__name__)
from typing import Optional, List
import pandas as pd

class DataManager:
    def __init__(self):
        log.debug("Initializing DataManager.")
        self._raw_data: Optional[pd.DataFrame] = None; self._processed_data: Optional[pd.DataFrame] = None
        self._spline = None; self._peaks: Optional[List] = None
        self._tms_shift: float = 0.0; self._integration_method = None; self._tolerance: Optional[float] = None
        self._source_filepath: Optional[str] = None; self._source_format: Optional[str] = None

    @property
    def raw_data(self) -> Optional[pd.DataFrame]: return self._raw_data
    @property
    def processed_data(self) -> Optional[pd.DataFrame]: return self._processed_data
    @property
    def spline(self): return self._spline
    @property
    def peaks(self) -> Optional[List]: return self._peaks
    @property
    def tms_shift(self) -> float: return self._tms_shift
    @property
    def integration_method(self): return self._integration_method
    @property
    def tolerance(self) -> Optional[float]: return self._tolerance
    @property
    def source_filepath(self) -> Optional[str]: return self._source_filepath
    @property
    def source_format(self) -> Optional[str]: return self._source_format

    def set_raw_data(self, data: Optional[pd.DataFrame], filepath: Optional[str] = None, fileformat: Optional[str] = None):
        if data is not None and not isinstance(data, pd.DataFrame): raise TypeError("raw_data must be DataFrame or None.")
        self._raw_data = data.copy() if data is not None else None; self._source_filepath = filepath; self._source_format = fileformat
        log.debug(f"Raw data set. Source: {filepath or 'N/A'}")
    def set_processed_data(self, data: Optional[pd.DataFrame]):
        if data is not None and not isinstance(data, pd.DataFrame): raise TypeError("processed_data must be DataFrame or None.")
        self._processed_data = data.copy() if data is not None else None; log.debug("Processed data set.")
    def set_spline(self, spline):
        if spline is not None and not spline.is_computed: raise TypeError("spline must be computed or None.")
        self._spline = spline; log.debug("Spline set.")
    def set_peaks(self, peaks: Optional[List]):
        if peaks is not None and not isinstance(peaks, list): raise TypeError("peaks must be list or None.")
        self._peaks = list(peaks) if peaks is not None else None; log.debug(f"Peaks set ({len(peaks) if peaks is not None else 0} peaks).")
    def set_tms_shift(self, shift: float): self._tms_shift = float(shift); log.debug(f"TMS shift set ({shift}).")
    def set_integration(self, method, tolerance: Optional[float]): self._integration_method = method; self._tolerance = tolerance

    def clear_all(self):
        log.warning("Clearing all data in DataManager."); self._raw_data = None; self._processed_data = None; self._spline = None
        self._peaks = None; self._tms_shift = 0.0; self._integration_method = None; self._tolerance = None
        self._source_filepath = None; self._source_format = None
    def clear_peaks(self): log.info("Clearing peaks."); self._peaks = None; self._integration_method = None; self._tolerance = None
    def clear_spline_and_downstream(self): log.info("Clearing spline & downstream."); self._spline = None; self.clear_peaks()

    def has_data(self, data_type: str) -> bool:
        attr_map = {"raw": self._raw_data, "processed": self._processed_data, "spline": self._spline, "peaks": self._peaks}
        data = attr_map.get(data_type.lower())
        if isinstance(data, pd.DataFrame): return not data.empty
        if isinstance(data, list): return bool(data)
        return data is not None
