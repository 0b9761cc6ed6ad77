"""Table statistics report building from raw catalog rows."""

import logging
from typing import Dict, List, Any, Optional

from ..models.report_models import TableStatistic, StatisticsReport

logger = logging.getLogger(__name__)


def _flag(value: Any) -> bool:
    # bit columns arrive as bool from pyodbc, NULL as None
    return bool(value)


def _label(value: Any, when_set: str, when_clear: str) -> str:
    return when_set if _flag(value) else when_clear


class StatisticsExtractor:
    """Turns ``sys.stats`` rows into labeled report entries."""

    def build_entry(self, row: Dict[str, Any]) -> TableStatistic:
        """Label a single raw statistics row.

        Args:
            row: Row from ``CatalogQueries.get_table_statistics``

        Returns:
            Labeled table statistic
        """
        return TableStatistic(
            database_name=row.get('database_name'),
            schema_name=row.get('schema_name'),
            table_name=row.get('table_name'),
            statistics_name=row.get('statistics_name'),
            stats_columns=row.get('stats_columns'),
            auto_created=_label(row.get('auto_created'), "Auto-created", "Not auto-created"),
            user_created=_label(row.get('user_created'), "Created by a user", "System-generated"),
            auto_update=_label(row.get('no_recompute'), "Recompute disabled", "Recompute enabled"),
            filter_applied=_label(row.get('has_filter'), "Filtered statistics applied", "Full dataset statistics"),
            filter_definition=row.get('filter_definition'),
            statistics_type=_label(row.get('is_temporary'), "Temporary statistics", "Persistent statistics"),
            generation_method=row.get('generation_method')
        )

    def build_report(self, rows: List[Dict[str, Any]], database_name: Optional[str] = None,
                     schemas: Optional[List[str]] = None, table: Optional[str] = None) -> StatisticsReport:
        """Build the statistics report.

        Args:
            rows: Raw statistics rows
            database_name: Database the rows were read from
            schemas: Only keep statistics on tables in these schemas
            table: Only keep statistics on tables with this name

        Returns:
            Report ordered by schema and table name
        """
        entries = [self.build_entry(row) for row in rows]

        if schemas:
            entries = [e for e in entries if e.schema_name in schemas]
        if table is not None:
            entries = [e for e in entries if e.table_name == table]

        # sorted() is stable, so statistics on the same table keep catalog order
        entries = sorted(entries, key=lambda e: (e.schema_name or "", e.table_name or ""))

        if database_name is None and entries:
            database_name = entries[0].database_name

        logger.debug(f"Built statistics report with {len(entries)} entries")
        return StatisticsReport(database_name=database_name, entries=entries)
