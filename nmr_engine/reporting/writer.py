# nmr_engine/reporting/writer.py
import logging; log = logging.getLogger(__name__)
from typing import List, Optional
import numpy as np
from ..core._exceptions import ReportingError, ValidationError
from ..processing.peak_detection import Peak
from ..utils.helpers import format_value, format_elapsed

RULE = "=" * 31


def write_data(filename: str, x_data, y_data, header: str = "") -> int:
    x = np.asarray(x_data, dtype=float); y = np.asarray(y_data, dtype=float)
    if x.shape != y.shape: raise ReportingError(f"x and y data sizes don't match ({x.size} vs {y.size}).")
    try: np.savetxt(filename, np.column_stack((x, y)), fmt='%.6f', delimiter=' ', header=header, comments='# ')
    except OSError as e: raise ReportingError(f"Cannot open output file: {filename} ({e})") from e
    log.info(f"Data written to: {filename} ({x.size} points)")
    return int(x.size)


def write_spline_data(filename: str, spline, x_min: float, x_max: float, num_points: int = 2000) -> int:
    if spline is None or not spline.is_computed: raise ReportingError("Spline not computed.")
    try: curve = spline.sample(x_min, x_max, num_points)
    except ValidationError as e: raise ReportingError(str(e)) from e
    write_data(filename, curve['shift'].values, curve['intensity'].values, header=f"Cubic spline evaluated at {num_points} points")
    return num_points


def write_peak_data(filename: str, peaks: List[Peak], baseline: float) -> int:
    lines = ["# Peak data for plotting",
             "# Format: peak_number, begin, end, location, maximum, area, hydrogens",
             f"# Baseline: {baseline}"]
    for i, p in enumerate(peaks, start=1):
        lines.append(f"{i} {p.begin:.12f} {p.end:.12f} {p.location:.12f} {p.maximum:.12f} {p.area:.12e} {p.hydrogens}")
    try:
        with open(filename, 'w', encoding='utf-8') as f: f.write("\n".join(lines) + "\n")
    except OSError as e: raise ReportingError(f"Cannot open output file: {filename} ({e})") from e
    log.info(f"Peak data written to: {filename} ({len(peaks)} peaks)")
    return len(peaks)


def format_peak_table(peaks: List[Peak]) -> str:
    header = f"{'Peak':>7} {'Begin':>16} {'End':>16} {'Location':>16} {'Top':>16} {'Area':>16} {'Hydrogens':>9}"
    rule = " ".join(["=" * 7] + ["=" * 16] * 5 + ["=" * 9])
    rows = [f"{i:>7} {p.begin:>16.12f} {p.end:>16.12f} {p.location:>16.12f} {p.maximum:>16.6f} {p.area:>16.10e} {p.hydrogens:>9}"
            for i, p in enumerate(peaks, start=1)]
    return "\n".join([header, rule] + rows)


def format_report(config, peaks: List[Peak], tms_shift: float = 0.0, elapsed: Optional[float] = None) -> str:
    out = ["-=> NMR ANALYSIS <=-", "", "Program Options", RULE,
           f"Baseline Adjustment : {format_value(config.baseline_adjustment, 6)}",
           f"Tolerance           : {format_value(config.tolerance, 6)}",
           f"Filter Type         : {config.filter_type_name}"]
    if config.filtering_enabled:
        out += [f"Filter Size         : {config.filter_size}", f"Filter Passes       : {config.filter_passes}"]
    out += [f"Integration Method  : {config.integration_type_name}", "",
            "Techniques", RULE, f"{config.integration_type_name} Integration", "",
            "Plot File Data", RULE, f"File: {config.input_filename}",
            f"Plot shifted {format_value(tms_shift, 6)} ppm for TMS calibration", "",
            format_peak_table(peaks), ""]
    if elapsed is not None: out.append(f"Analysis took {format_elapsed(elapsed)}.")
    return "\n".join(out) + "\n"


def write_report(filename: str, config, peaks: List[Peak], tms_shift: float = 0.0, elapsed: Optional[float] = None) -> str:
    text = format_report(config, peaks, tms_shift, elapsed)
    try:
        with open(filename, 'w', encoding='utf-8') as f: f.write(text)
    except OSError as e: raise ReportingError(f"Could not open output file: {filename} ({e})") from e
    log.info(f"Results written to: {filename}")
    return text
