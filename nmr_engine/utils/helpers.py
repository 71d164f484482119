# nmr_engine/utils/helpers.py
import logging
log = logging.getLogger(__name__)

def format_value(value, precision=3):
    """Formats a numeric value for display."""
    if value is None: return "N/A"
    try: return f"{float(value):.{precision}g}"
    except (ValueError, TypeError): return str(value)

def format_elapsed(seconds):
    if seconds is None: return "N/A"
    return f"{seconds:.3f} seconds"
