# nmr_engine/analysis/quantification.py
import logging; log = logging.getLogger(__name__)
import math
from typing import List, Optional
from ..processing.peak_detection import Peak


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def smallest_positive_area(peaks: List[Peak]) -> Optional[float]:
    positive = [p.area for p in peaks if p.area > 0]
    return min(positive) if positive else None


def quantify_peaks(peaks: List[Peak]) -> List[Peak]:
    """
    Sets relative hydrogen counts in place: the smallest positive area is one
    hydrogen and every area is rounded to a whole multiple of it.

    Non-positive areas are normalised too but never chosen as the unit. When
    no peak has a positive area all counts are 0.
    """
    if not peaks: return peaks
    unit_area = smallest_positive_area(peaks)
    if unit_area is None:
        log.warning(f"No peak with positive area among {len(peaks)}; hydrogen counts set to 0.")
        for peak in peaks: peak.hydrogens = 0
        return peaks
    for peak in peaks:
        peak.hydrogens = _round_half_away(peak.area / unit_area)
    log.info(f"Calculated hydrogen ratios for {len(peaks)} peaks (unit area {unit_area:.6e} = 1 H).")
    return peaks
