"""Report exporter that dispatches a report to the requested output formats."""

import logging
from typing import Dict, Any, Union

from .json_exporter import JSONExporter
from .csv_exporter import CSVExporter
from ..models.report_models import StatisticsReport, PermissionReport
from ..config import AppConfig

logger = logging.getLogger(__name__)

FILE_FORMATS = ("json", "csv")
OUTPUT_FORMATS = ("console",) + FILE_FORMATS + ("all",)


class ReportExporter:
    """Handles exporting reports to different file formats."""

    def __init__(self, config: AppConfig):
        """Initialize report exporter.

        Args:
            config: Application configuration
        """
        self.config = config
        self.json_exporter = JSONExporter(config)
        self.csv_exporter = CSVExporter(config)

    def export_report(self, report: Union[StatisticsReport, PermissionReport],
                      output_format: str) -> Dict[str, Any]:
        """Export a report in the specified format.

        A failure in one format is reported in the result and does not stop
        the other formats.

        Args:
            report: Statistics or permission report
            output_format: Output format (json, csv, all)

        Returns:
            Dictionary with export results per format
        """
        results = {}

        if output_format in ["json", "all"]:
            try:
                json_file = self.json_exporter.export_report(report)
                results['json'] = {
                    'success': True,
                    'file': json_file,
                    'message': f"JSON export: {json_file}"
                }
            except (OSError, TypeError, ValueError) as e:
                logger.error(f"JSON export failed: {e}")
                results['json'] = {
                    'success': False,
                    'error': str(e),
                    'message': f"JSON export failed: {e}"
                }

        if output_format in ["csv", "all"]:
            try:
                csv_file = self.csv_exporter.export_report(report)
                results['csv'] = {
                    'success': True,
                    'file': csv_file,
                    'message': f"CSV export: {csv_file}"
                }
            except (OSError, ValueError) as e:
                logger.error(f"CSV export failed: {e}")
                results['csv'] = {
                    'success': False,
                    'error': str(e),
                    'message': f"CSV export failed: {e}"
                }

        return results
