# nmr_engine/data_import/config.py
import logging; log = logging.getLogger(__name__)
import os
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, List
import yaml
from ..core._exceptions import ConfigurationError
from ..processing.integration import INTEGRATION_METHOD_NAMES

FILTER_TYPE_NAMES: Dict[int, str] = {0: "None, Filtering is Off", 1: "Boxcar (Cyclic)", 2: "Savitzky-Golay"}
# Order of the eight lines of a legacy nmr.in file
LEGACY_FIELDS: List[str] = ['input_filename', 'baseline_adjustment', 'tolerance', 'filter_type',
                            'filter_size', 'filter_passes', 'integration_type', 'output_filename']


@dataclass
class AnalysisConfig:
    """Run options for one spectrum analysis."""
    input_filename: str = ""
    baseline_adjustment: float = 0.0
    tolerance: float = 1e-8
    filter_type: int = 0               # 0=none, 1=boxcar, 2=Savitzky-Golay
    filter_size: int = 0
    filter_passes: int = 0
    integration_type: int = 0          # 0=Newton-Cotes, 1=Romberg, 2=Adaptive, 3=Gauss-Legendre
    output_filename: str = "analysis.txt"

    @property
    def filter_type_name(self) -> str: return FILTER_TYPE_NAMES.get(self.filter_type, "Unknown")
    @property
    def integration_type_name(self) -> str: return INTEGRATION_METHOD_NAMES.get(self.integration_type, "Unknown")
    @property
    def filtering_enabled(self) -> bool: return self.filter_type != 0

    def to_dict(self) -> Dict[str, Any]: return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalysisConfig':
        known = {f.name: f.type for f in fields(cls)}
        unknown = [k for k in data if k not in known]
        if unknown: log.warning(f"Ignoring unknown config keys: {unknown}")
        values = {}
        for f in fields(cls):
            if f.name in data and data[f.name] is not None: values[f.name] = _coerce(f.name, data[f.name], type(getattr(cls(), f.name)))
        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> 'AnalysisConfig':
        if self.tolerance <= 0: raise ConfigurationError(f"Tolerance must be positive, got {self.tolerance}.")
        if self.filter_type not in FILTER_TYPE_NAMES: raise ConfigurationError(f"Unknown filter type: {self.filter_type}.")
        if self.filter_passes < 0: raise ConfigurationError(f"Filter passes must be >= 0, got {self.filter_passes}.")
        if self.filtering_enabled:
            if self.filter_size <= 0: raise ConfigurationError(f"Filter size must be positive when filtering, got {self.filter_size}.")
            if self.filter_size % 2 == 0:
                log.warning(f"Filter size should be odd. Adjusting from {self.filter_size} to {self.filter_size + 1}")
                self.filter_size += 1
        # Unknown integration types are allowed here; integration reports them per peak
        if self.integration_type not in INTEGRATION_METHOD_NAMES: log.warning(f"Unknown integration type: {self.integration_type}.")
        return self


def _coerce(name: str, value: Any, target: type) -> Any:
    try:
        if target is int:
            as_float = float(value)
            if not as_float.is_integer(): raise ValueError(f"{value!r} is not an integer")
            return int(as_float)
        return target(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for '{name}': {value!r} ({e})") from e


def read_legacy_config(filepath: str) -> AnalysisConfig:
    """Reads the eight-line nmr.in format; only the first token of each line is used."""
    log.info(f"Loading legacy config: {filepath}")
    if not os.path.exists(filepath): raise ConfigurationError(f"Cannot open configuration file: {filepath}")
    with open(filepath, 'r', encoding='utf-8') as f: lines = f.read().splitlines()
    if len(lines) < len(LEGACY_FIELDS):
        raise ConfigurationError(f"Configuration file incomplete. Expected {len(LEGACY_FIELDS)} lines, found {len(lines)}")
    values: Dict[str, Any] = {}
    for lineno, (name, line) in enumerate(zip(LEGACY_FIELDS, lines), start=1):
        tokens = line.split()
        if not tokens: raise ConfigurationError(f"Line {lineno} ({name}) of '{filepath}' is empty.")
        values[name] = tokens[0]
    return AnalysisConfig.from_dict(values)


def load_analysis_config(filepath: str) -> AnalysisConfig:
    log.info(f"Loading analysis config: {filepath}")
    if not os.path.exists(filepath): raise ConfigurationError(f"Config file not found: {filepath}")
    try:
        with open(filepath, 'r', encoding='utf-8') as f: config_data = yaml.safe_load(f)
    except yaml.YAMLError as e: raise ConfigurationError(f"YAML parse error '{filepath}': {e}") from e
    if not isinstance(config_data, dict): raise ConfigurationError(f"Invalid config: root not dict '{filepath}'.")
    log.debug(f"Loaded YAML config: {config_data}")
    return AnalysisConfig.from_dict(config_data)


def load_config(filepath: str) -> AnalysisConfig:
    _, ext = os.path.splitext(filepath)
    if ext.lower() in ('.yaml', '.yml'): return load_analysis_config(filepath)
    return read_legacy_config(filepath)
