# nmr_engine/core/_exceptions.py
class NMREngineError(Exception): pass
class ConfigurationError(NMREngineError): pass
class DataLoadingError(NMREngineError): pass
class DataNotFoundError(NMREngineError): pass
class ValidationError(NMREngineError): pass
class ProcessingError(NMREngineError): pass
class PeakDetectionError(ProcessingError): pass
class IntegrationError(ProcessingError): pass
class UnsupportedSelectorError(IntegrationError): pass
class AnalysisError(NMREngineError): pass
class ReportingError(NMREngineError): pass
