# nmr_engine/analysis/__init__.py
import logging
from .quantification import quantify_peaks

logging.getLogger(__name__).addHandler(logging.NullHandler())
log = logging.getLogger(__name__); log.debug("Analysis sub-package initialized.")

__all__ = ['quantify_peaks', 'quantification']
