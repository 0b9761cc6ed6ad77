"""Fabric Warehouse connector implementation."""

import logging
from typing import Dict, List, Any, Optional

import pyodbc

from ..base_connector import BaseConnector, SourceConnection
from .warehouse_source import WarehouseSource
from ...models.report_models import StatisticsReport, PermissionReport
from ...db.connection import WarehouseConnection
from ...config import AppConfig

logger = logging.getLogger(__name__)


class FabricWarehouseConnector(BaseConnector):
    """Connector for a Fabric Warehouse (or any SQL Server compatible) endpoint."""

    def __init__(self, connection: SourceConnection, config: AppConfig):
        """Initialize Fabric Warehouse connector.

        Args:
            connection: Source connection information
            config: Application configuration
        """
        super().__init__(connection, config)
        self.db_connection = WarehouseConnection(
            connection.connection_string,
            login_timeout=connection.login_timeout
        )
        self.source = WarehouseSource(self.db_connection, config)

    def extract_table_statistics(self, schemas: Optional[List[str]] = None,
                                 table: Optional[str] = None) -> StatisticsReport:
        return self.source.extract_table_statistics(schemas, table)

    def extract_permissions(self, principal_name: Optional[str] = None) -> PermissionReport:
        return self.source.extract_permissions(principal_name)

    def get_available_schemas(self) -> List[str]:
        return self.source.get_available_schemas()

    def test_connection(self) -> bool:
        return self.db_connection.test_connection()

    def get_connection_info(self) -> Dict[str, Any]:
        """Get information about the connection.

        Returns:
            Dictionary with connection information
        """
        try:
            server_version = self.db_connection.get_server_version()
            return {
                'source_type': self.connection.source_type,
                'server': self.connection.credentials.get('server'),
                'database': self.source.database_name or self.connection.credentials.get('database'),
                'username': self.connection.credentials.get('username'),
                'authentication': self.connection.credentials.get('authentication'),
                'server_version': server_version.splitlines()[0] if server_version else None,
                'connection_status': 'connected' if server_version else 'disconnected'
            }
        except pyodbc.Error as e:
            logger.error(f"Failed to get connection info: {e}")
            return {
                'source_type': self.connection.source_type,
                'connection_status': 'error',
                'error': str(e)
            }
