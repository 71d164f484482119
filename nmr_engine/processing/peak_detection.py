# nmr_engine/processing/peak_detection.py
import logging; log = logging.getLogger(__name__)
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Union
import numpy as np; import pandas as pd
from .integration import integrate, resolve_method, INTEGRATION_METHOD_NAMES
from ..core._exceptions import ValidationError, UnsupportedSelectorError

# Peaks centred this close to 0 ppm are the TMS reference, not sample signal
REFERENCE_EXCLUSION_PPM = 0.02
PEAK_COLUMNS = ['begin', 'end', 'location', 'maximum', 'area', 'hydrogens']


@dataclass
class Peak:
    begin: float
    end: float
    location: float
    maximum: float
    area: float = 0.0
    hydrogens: int = 0

    def to_dict(self) -> Dict[str, Any]: return asdict(self)


def peaks_to_dataframe(peaks: List[Peak]) -> pd.DataFrame:
    if not peaks: return pd.DataFrame(columns=PEAK_COLUMNS)
    return pd.DataFrame([p.to_dict() for p in peaks], columns=PEAK_COLUMNS)


def detect_peaks(spline, x_data, y_data, baseline: float) -> List[Peak]:
    """
    Delimits peaks by the baseline crossings of the fitted spline.

    A pair of neighbouring crossings is a peak when the spline is above the
    baseline at their midpoint. location is that midpoint, not the position
    of the maximum; maximum is the tallest sample between the crossings.

    The data edges close a peak whenever the curve there is above the
    baseline, even if no interior crossing was found, so a curve that never
    drops below the baseline yields one peak spanning the whole range. A
    region is dropped only when it holds no samples at all; a region whose
    samples all sit at or below the baseline is kept with that maximum.
    """
    if spline is None or not spline.is_computed: raise ValidationError("Peak detection requires a computed spline.")
    x = np.asarray(x_data, dtype=float); y = np.asarray(y_data, dtype=float)
    if x.size == 0 or y.size == 0: raise ValidationError("Peak detection requires non-empty sample arrays.")
    if x.shape != y.shape: raise ValidationError(f"Sample size mismatch: x={x.size}, y={y.size}.")

    x_min, x_max = float(np.min(x)), float(np.max(x))
    log.info(f"Detecting peaks above baseline {baseline} in [{x_min:.4f}, {x_max:.4f}]...")
    crossings = spline.find_crossings(baseline, x_min, x_max)

    # Spectrum starting or ending above the baseline: the data edge closes the peak
    if spline.evaluate(x_min) > baseline: crossings.insert(0, x_min); log.debug("Curve above baseline at lower edge; added x_min crossing.")
    if spline.evaluate(x_max) > baseline: crossings.append(x_max); log.debug("Curve above baseline at upper edge; added x_max crossing.")
    if len(crossings) < 2:
        log.info("No complete peaks found (need at least 2 crossings).")
        return []
    crossings.sort()
    log.debug(f"{len(crossings)} baseline crossings: {np.round(crossings, 6).tolist()}")

    peaks: List[Peak] = []
    for x_begin, x_end in zip(crossings[:-1], crossings[1:]):
        x_mid = (x_begin + x_end) / 2.0
        if spline.evaluate(x_mid) <= baseline: continue  # valley between two peaks
        in_region = (x >= x_begin) & (x <= x_end)
        if not np.any(in_region):
            log.debug(f"Region [{x_begin:.6f}, {x_end:.6f}] holds no samples; skipped.")
            continue
        if abs(x_mid) < REFERENCE_EXCLUSION_PPM:
            log.debug(f"Region centred at {x_mid:.6f} is the reference peak; skipped.")
            continue
        peaks.append(Peak(begin=float(x_begin), end=float(x_end), location=float(x_mid), maximum=float(np.max(y[in_region]))))
    log.info(f"Found {len(peaks)} peaks.")
    return peaks


def integrate_peaks(peaks: List[Peak], spline, method: Union[int, str] = 0, tolerance: float = 1e-8) -> List[Peak]:
    """Sets each peak's area in place. An unknown method zeroes that peak's area and moves on."""
    log.info(f"Integrating {len(peaks)} peaks ({INTEGRATION_METHOD_NAMES.get(method, method)}, tol={tolerance})...")
    for i, peak in enumerate(peaks):
        try:
            peak.area = integrate(spline, peak.begin, peak.end, method, tolerance)
            log.debug(f"Peak {i + 1} [{peak.begin:.6f}, {peak.end:.6f}] area={peak.area:.10e}")
        except UnsupportedSelectorError as e:
            log.error(f"Peak {i + 1}: {e}")
            peak.area = 0.0
    return peaks


def is_supported_method(method: Union[int, str]) -> bool:
    try: resolve_method(method); return True
    except UnsupportedSelectorError: return False
