"""CSV export functionality for audit reports."""

import logging
from pathlib import Path
from typing import Optional, Union

from ..models.report_models import StatisticsReport, PermissionReport
from ..config import AppConfig

logger = logging.getLogger(__name__)


class CSVExporter:
    """Export audit reports to CSV format, one file per report."""

    def __init__(self, config: AppConfig):
        """Initialize CSV exporter.

        Args:
            config: Application configuration
        """
        self.config = config
        self.output_dir = Path(config.output.csv_dir)

        if config.output.create_dirs:
            self.output_dir.mkdir(parents=True, exist_ok=True)

    def export_report(self, report: Union[StatisticsReport, PermissionReport],
                      filename: Optional[str] = None) -> str:
        """Export a report to CSV using the report column names as header.

        NULL values are written as empty cells.

        Args:
            report: Statistics or permission report
            filename: Optional custom filename

        Returns:
            Path to the exported file
        """
        if filename is None:
            timestamp = report.generated_at.strftime("%Y%m%d_%H%M%S")
            filename = f"{report.report_type}_{timestamp}.csv"

        filepath = self.output_dir / filename
        report.to_dataframe().to_csv(filepath, index=False, encoding='utf-8')

        logger.info(f"{report.title} exported to: {filepath} ({len(report.entries)} rows)")
        return str(filepath)
