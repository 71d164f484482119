# nmr_engine/core/__init__.py
from .engine import NMRAnalysisEngine, EngineState
from .data_manager import DataManager
from ._exceptions import * # Make exceptions available within core

__all__ = [
    'NMRAnalysisEngine', 'EngineState',
    'DataManager',
    'NMREngineError', 'ConfigurationError', 'DataLoadingError', 'DataNotFoundError', 'ValidationError',
    'ProcessingError', 'PeakDetectionError', 'IntegrationError', 'UnsupportedSelectorError', 'AnalysisError', 'ReportingError',
]
