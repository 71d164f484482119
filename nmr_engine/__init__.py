# nmr_engine/__init__.py
import logging
from .core.engine import NMRAnalysisEngine, EngineState
from .core._exceptions import * # Expose exceptions
from .analysis import * # Expose analysis functions
from .processing import * # Expose processing functions

__version__ = "0.1.0"
logging.getLogger(__name__).addHandler(logging.NullHandler()) # Avoid warnings if no handler set
