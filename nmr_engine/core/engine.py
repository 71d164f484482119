# nmr_engine/core/engine.py
import logging; log = logging.getLogger(__name__)
import time; from enum import Enum, auto
from typing import Optional, Dict, Any, List, Union
import pandas as pd

from ..data_import import loader
from ..data_import.config import AnalysisConfig
from ..processing import calibration, smoothing, peak_detection, integration
from ..processing.spline import CubicSpline
from ..analysis import quantification

from .data_manager import DataManager
from ._exceptions import ( NMREngineError, ConfigurationError, DataLoadingError, DataNotFoundError, ValidationError,
                           ProcessingError, PeakDetectionError, IntegrationError, AnalysisError )

class EngineState(Enum):
    INITIALIZED = auto(); DATA_LOADED = auto(); CALIBRATED = auto(); SMOOTHED = auto(); SPLINE_FITTED = auto()
    PEAKS_FOUND = auto(); PEAKS_INTEGRATED = auto(); QUANTIFIED = auto(); ERROR = auto()

_SPECTRUM_STATES = [EngineState.DATA_LOADED, EngineState.CALIBRATED, EngineState.SMOOTHED]
_SPLINE_STATES = [EngineState.SPLINE_FITTED, EngineState.PEAKS_FOUND, EngineState.PEAKS_INTEGRATED, EngineState.QUANTIFIED]

class NMRAnalysisEngine:
    def __init__(self):
        log.info("Initializing NMRAnalysisEngine.")
        self._state: EngineState = EngineState.INITIALIZED
        self.data = DataManager()
        self.last_error: Optional[str] = None

    @property
    def state(self) -> EngineState: return self._state

    def _set_state(self, new_state: EngineState):
        if self._state != new_state:
            log.info(f"Engine state: {self._state.name} -> {new_state.name}")
            self._state = new_state
            if new_state == EngineState.ERROR: log.error(f"Engine entered ERROR state. Last error: {self.last_error}")

    def _check_state(self, required: Union[EngineState, List[EngineState]]):
        req_list = required if isinstance(required, list) else [required]
        if self._state not in req_list:
            msg = f"Invalid state: {self._state.name}, requires one of {[s.name for s in req_list]}"
            log.error(msg); self.last_error = msg; self._set_state(EngineState.ERROR); raise NMREngineError(msg)

    def _fail(self, message: str, error_type: type, cause: Exception, unexpected: bool = False):
        self.last_error = message
        if unexpected: log.exception(message)
        else: log.error(message)
        self._set_state(EngineState.ERROR)
        raise error_type(message) from cause

    def _reset_state(self, to_state: EngineState = EngineState.INITIALIZED):
        log.warning(f"Resetting engine state to {to_state.name} and clearing data.")
        self.data.clear_all(); self.last_error = None; self._set_state(to_state)

    def _store_spectrum(self, spectrum: Optional[pd.DataFrame], filepath: Optional[str], fileformat: str):
        if spectrum is None or spectrum.empty: raise DataLoadingError(f"No data points read from '{filepath or 'arrays'}'.")
        self.data.set_raw_data(spectrum, filepath=filepath, fileformat=fileformat)
        self.data.set_processed_data(self.data.raw_data)
        self.last_error = None; self._set_state(EngineState.DATA_LOADED)
        log.info(f"Loaded {len(self.data.raw_data)} points.")

    def load_data(self, filepath: str, **kwargs: Any) -> bool:
        log.info(f"Loading data from '{filepath}'")
        self._reset_state(EngineState.INITIALIZED)
        try:
            self._store_spectrum(loader.load_spectrum(filepath, **kwargs), filepath, kwargs.get('file_format', 'txt'))
            return True
        except DataLoadingError as e: self._fail(f"Load failed: {e}", DataLoadingError, e)
        except Exception as e: self._fail(f"Load error: {e}", DataLoadingError, e, unexpected=True)

    def load_arrays(self, x, y) -> bool:
        log.info("Loading data from arrays")
        self._reset_state(EngineState.INITIALIZED)
        try:
            self._store_spectrum(loader.spectrum_from_arrays(x, y), None, 'arrays')
            return True
        except DataLoadingError as e: self._fail(f"Load failed: {e}", DataLoadingError, e)
        except Exception as e: self._fail(f"Load error: {e}", DataLoadingError, e, unexpected=True)

    def calibrate_tms(self, baseline: float) -> float:
        self._check_state(EngineState.DATA_LOADED)
        log.info(f"TMS calibration: baseline={baseline}")
        try:
            calibrated, shift = calibration.apply_tms_calibration(self.data.processed_data, baseline)
            self.data.set_processed_data(calibrated); self.data.set_tms_shift(shift)
            self.last_error = None; self._set_state(EngineState.CALIBRATED)
            return shift
        except DataNotFoundError as e: self._fail(f"Calibration failed: {e}", ProcessingError, e)
        except Exception as e: self._fail(f"Calibration error: {e}", ProcessingError, e, unexpected=True)

    def smooth_data(self, method: str = 'savitzky_golay', params: Optional[Dict[str, Any]] = None) -> bool:
        self._check_state(_SPECTRUM_STATES)
        log.info(f"Smoothing: method='{method}', params={params}")
        self.data.clear_spline_and_downstream()
        try:
            smoothed_df = smoothing.smooth_spectrum(self.data.processed_data, method, params)
            if smoothed_df is None or smoothed_df.empty: raise ProcessingError("Smoothing returned no data.")
            self.data.set_processed_data(smoothed_df)
            self.last_error = None; self._set_state(EngineState.SMOOTHED)
            return True
        except (ProcessingError, ConfigurationError, DataNotFoundError) as e: self._fail(f"Smooth failed: {e}", ProcessingError, e)
        except Exception as e: self._fail(f"Smooth error: {e}", ProcessingError, e, unexpected=True)

    def fit_spline(self) -> CubicSpline:
        self._check_state(_SPECTRUM_STATES + _SPLINE_STATES)
        proc = self.data.processed_data
        if proc is None or proc.empty: raise DataNotFoundError("Processed data needed for spline fitting.")
        self.data.clear_spline_and_downstream()
        try:
            spline = CubicSpline().compute(proc['shift'].values, proc['intensity'].values)
            self.data.set_spline(spline)
            self.last_error = None; self._set_state(EngineState.SPLINE_FITTED)
            return spline
        except ValidationError as e: self._fail(f"Spline fit failed: {e}", ValidationError, e)
        except Exception as e: self._fail(f"Spline fit error: {e}", ProcessingError, e, unexpected=True)

    def find_peaks(self, baseline: float) -> List[peak_detection.Peak]:
        self._check_state(_SPLINE_STATES)
        proc = self.data.processed_data
        log.info(f"Finding peaks: baseline={baseline}")
        self.data.clear_peaks()
        try:
            peaks = peak_detection.detect_peaks(self.data.spline, proc['shift'].values, proc['intensity'].values, baseline)
            self.data.set_peaks(peaks)
            self.last_error = None; self._set_state(EngineState.PEAKS_FOUND)
            return self.data.peaks
        except ValidationError as e: self._fail(f"Peak find failed: {e}", PeakDetectionError, e)
        except Exception as e: self._fail(f"Peak find error: {e}", PeakDetectionError, e, unexpected=True)

    def integrate_peaks(self, method: Union[int, str] = 0, tolerance: float = 1e-8) -> List[peak_detection.Peak]:
        self._check_state([EngineState.PEAKS_FOUND, EngineState.PEAKS_INTEGRATED, EngineState.QUANTIFIED])
        if tolerance is None or tolerance <= 0: raise ConfigurationError(f"Tolerance must be positive, got {tolerance}.")
        peaks = self.data.peaks or []
        if not peak_detection.is_supported_method(method): log.warning(f"Integration method {method!r} is not supported; areas will be 0.")
        try:
            for peak in peaks: peak.hydrogens = 0
            peak_detection.integrate_peaks(peaks, self.data.spline, method, tolerance)
            self.data.set_integration(method, tolerance)
            self.last_error = None; self._set_state(EngineState.PEAKS_INTEGRATED)
            return peaks
        except ValidationError as e: self._fail(f"Integration failed: {e}", IntegrationError, e)
        except Exception as e: self._fail(f"Integration error: {e}", IntegrationError, e, unexpected=True)

    def quantify(self) -> List[peak_detection.Peak]:
        self._check_state([EngineState.PEAKS_INTEGRATED, EngineState.QUANTIFIED])
        try:
            peaks = quantification.quantify_peaks(self.data.peaks or [])
            self.last_error = None; self._set_state(EngineState.QUANTIFIED)
            return peaks
        except Exception as e: self._fail(f"Quant error: {e}", AnalysisError, e, unexpected=True)

    def cross_validate_areas(self, tolerance: Optional[float] = None) -> pd.DataFrame:
        """Integrates every detected peak with all four methods, one column per method."""
        self._check_state([EngineState.PEAKS_FOUND, EngineState.PEAKS_INTEGRATED, EngineState.QUANTIFIED])
        tol = tolerance if tolerance is not None else (self.data.tolerance or 1e-8)
        rows = [integration.integrate_all_methods(self.data.spline, p.begin, p.end, tol) for p in (self.data.peaks or [])]
        table = pd.DataFrame(rows, columns=list(integration.INTEGRATION_METHOD_NAMES.values()))
        if not table.empty: log.info(f"Largest cross-method area spread: {(table.max(axis=1) - table.min(axis=1)).max():.3e}")
        return table

    def sample_spline(self, num_points: int = 2000) -> pd.DataFrame:
        self._check_state(_SPLINE_STATES)
        return self.data.spline.sample(num_points=num_points)

    def peaks_dataframe(self) -> pd.DataFrame:
        return peak_detection.peaks_to_dataframe(self.data.peaks or [])

    def run_analysis(self, config: AnalysisConfig, spectrum: Optional[pd.DataFrame] = None, calibrate: bool = True) -> Dict[str, Any]:
        """
        Full pipeline: load, TMS calibration, smoothing, spline, detection,
        integration and quantification. Errors propagate to the caller.
        """
        log.info("--- Starting NMR Analysis ---")
        start = time.perf_counter()
        if spectrum is None:
            if not config.input_filename: raise ConfigurationError("No input file configured.")
            self.load_data(config.input_filename)
        else:
            self.load_arrays(spectrum['shift'].values, spectrum['intensity'].values)
        shift = self.calibrate_tms(config.baseline_adjustment) if calibrate else 0.0
        method, params = smoothing.smoothing_for_filter_type(config.filter_type, config.filter_size, config.filter_passes)
        if method != 'none': self.smooth_data(method, params)
        else: log.info("Filtering disabled (filter type = 0)")
        self.fit_spline()
        self.find_peaks(config.baseline_adjustment)
        self.integrate_peaks(config.integration_type, config.tolerance)
        peaks = self.quantify()
        elapsed = time.perf_counter() - start
        log.info(f"--- Analysis finished: {len(peaks)} peaks in {elapsed:.3f} s ---")
        return {'status': 'Success', 'message': f'Found {len(peaks)} peaks.', 'peaks': peaks,
                'tms_shift': shift, 'elapsed': elapsed, 'state': self.state.name}
