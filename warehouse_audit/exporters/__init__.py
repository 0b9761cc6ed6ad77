"""Report exporters."""

from .json_exporter import JSONExporter
from .csv_exporter import CSVExporter
from .report_exporter import ReportExporter, OUTPUT_FORMATS

__all__ = ['JSONExporter', 'CSVExporter', 'ReportExporter', 'OUTPUT_FORMATS']
