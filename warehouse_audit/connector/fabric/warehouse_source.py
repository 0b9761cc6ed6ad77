"""Fabric Warehouse source: runs the catalog queries and builds the reports."""

import logging
from typing import Dict, List, Any, Optional

from ...db.connection import WarehouseConnection
from ...db.queries import CatalogQueries
from ...config import AppConfig
from ...extractor.statistics_extractor import StatisticsExtractor
from ...extractor.permission_extractor import PermissionExtractor
from ...models.report_models import StatisticsReport, PermissionReport

logger = logging.getLogger(__name__)


class WarehouseSource:
    """Reads catalog views from a warehouse and hands the rows to the extractors."""

    def __init__(self, db_connection: WarehouseConnection, config: AppConfig):
        """Initialize warehouse source.

        Args:
            db_connection: Warehouse connection instance
            config: Application configuration
        """
        self.db_connection = db_connection
        self.config = config
        self.queries = CatalogQueries()
        self.statistics_extractor = StatisticsExtractor()
        self.permission_extractor = PermissionExtractor()
        self._database_name: Optional[str] = None

    @property
    def database_name(self) -> Optional[str]:
        """Name of the database the connection lands in, looked up once."""
        if self._database_name is None:
            self._database_name = self.db_connection.get_database_name()
        return self._database_name

    def extract_table_statistics(self, schemas: Optional[List[str]] = None,
                                 table: Optional[str] = None) -> StatisticsReport:
        """Extract the table statistics report.

        Args:
            schemas: Optional schema filter
            table: Optional table filter

        Returns:
            Table statistics report
        """
        logger.info("Extracting table statistics")
        rows = self.db_connection.fetch_rows(self.queries.get_table_statistics())
        logger.info(f"Read {len(rows)} statistics rows")

        database_name = rows[0].get('database_name') if rows else self.database_name
        return self.statistics_extractor.build_report(
            rows, database_name=database_name, schemas=schemas, table=table
        )

    def extract_permissions(self, principal_name: Optional[str] = None) -> PermissionReport:
        """Extract the explicit and implicit permission report.

        Args:
            principal_name: Optional principal filter, None for every principal

        Returns:
            Permission report
        """
        if principal_name:
            logger.info(f"Extracting permissions for principal: {principal_name}")
        else:
            logger.info("Extracting permissions for all principals")

        params = (principal_name,)
        explicit_rows = self.db_connection.fetch_rows(self.queries.get_explicit_permissions(), params)
        implicit_rows = self.db_connection.fetch_rows(self.queries.get_implicit_permissions(), params)
        logger.info(f"Read {len(explicit_rows)} explicit and {len(implicit_rows)} implicit permission rows")

        return self.permission_extractor.build_report(
            explicit_rows, implicit_rows,
            database_name=self.database_name,
            principal_name=principal_name
        )

    def get_available_schemas(self) -> List[str]:
        """Get list of user schemas."""
        rows = self.db_connection.fetch_rows(self.queries.get_available_schemas())
        return [row['schema_name'] for row in rows]
