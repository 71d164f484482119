# nmr_engine/reporting/__init__.py
from .writer import write_data, write_spline_data, write_peak_data, write_report, format_peak_table, format_report

__all__ = ['write_data', 'write_spline_data', 'write_peak_data', 'write_report', 'format_peak_table', 'format_report']
