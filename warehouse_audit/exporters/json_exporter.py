"""JSON export functionality for audit reports."""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Union
from datetime import datetime

from ..models.report_models import StatisticsReport, PermissionReport
from ..config import AppConfig

logger = logging.getLogger(__name__)

Report = Union[StatisticsReport, PermissionReport]


class JSONExporter:
    """Export audit reports to JSON format."""

    def __init__(self, config: AppConfig):
        """Initialize JSON exporter.

        Args:
            config: Application configuration
        """
        self.config = config
        self.output_dir = Path(config.output.json_dir)

        if config.output.create_dirs:
            self.output_dir.mkdir(parents=True, exist_ok=True)

    def export_report(self, report: Report, filename: Optional[str] = None) -> str:
        """Export a report to a single JSON document.

        Args:
            report: Statistics or permission report
            filename: Optional custom filename

        Returns:
            Path to the exported file
        """
        if filename is None:
            timestamp = report.generated_at.strftime("%Y%m%d_%H%M%S")
            filename = f"{report.report_type}_{timestamp}.json"

        filepath = self.output_dir / filename

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self._report_to_dict(report), f, indent=2, ensure_ascii=False, default=str)

        logger.info(f"{report.title} exported to: {filepath}")
        return str(filepath)

    def _report_to_dict(self, report: Report) -> Dict[str, Any]:
        export_info = {
            'report': report.report_type,
            'database': report.database_name,
            'generated_at': report.generated_at.isoformat(),
            'exported_at': datetime.now().isoformat(),
            'row_count': len(report.entries),
        }
        if isinstance(report, PermissionReport):
            export_info['principal_filter'] = report.principal_name

        return {
            'export_info': export_info,
            'summary': report.summary(),
            'columns': report.columns,
            'rows': report.rows()
        }
