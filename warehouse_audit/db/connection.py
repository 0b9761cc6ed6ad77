"""Warehouse connection management."""

import pyodbc
from typing import Optional, Dict, Any, List, Sequence
from contextlib import contextmanager
import logging

logger = logging.getLogger(__name__)


class WarehouseConnection:
    """ODBC connection manager for a Fabric Warehouse SQL endpoint."""

    def __init__(self, connection_string: str, login_timeout: int = 30):
        """Initialize warehouse connection.

        Args:
            connection_string: ODBC connection string
            login_timeout: Seconds to wait for the login to complete
        """
        self.connection_string = connection_string
        self.login_timeout = login_timeout

    @contextmanager
    def get_connection(self):
        """Get warehouse connection as context manager."""
        connection = None
        try:
            connection = pyodbc.connect(self.connection_string, timeout=self.login_timeout)
            yield connection
        except pyodbc.Error as e:
            logger.error(f"Warehouse connection error: {e}")
            if connection:
                connection.rollback()
            raise
        finally:
            if connection:
                connection.close()

    def fetch_rows(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """Run a query and return its rows keyed by column alias.

        Args:
            sql: Query text, parameters bound with ``?``
            params: Optional positional parameters

        Returns:
            List of row dictionaries
        """
        with self.get_connection() as conn:
            cur = conn.cursor()
            try:
                if params:
                    cur.execute(sql, params)
                else:
                    cur.execute(sql)
                # Batches that start with DECLARE produce no result set first
                while cur.description is None and cur.nextset():
                    pass
                if cur.description is None:
                    return []
                columns = [column[0] for column in cur.description]
                return [dict(zip(columns, row)) for row in cur.fetchall()]
            finally:
                cur.close()

    def fetch_value(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """Run a query and return the first column of the first row."""
        rows = self.fetch_rows(sql, params)
        if not rows:
            return None
        return next(iter(rows[0].values()))

    def test_connection(self) -> bool:
        """Test warehouse connection.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            return self.fetch_value("SELECT 1 AS ok") == 1
        except pyodbc.Error as e:
            logger.error(f"Connection test failed: {e}")
            return False

    def get_server_version(self) -> Optional[str]:
        """Get the engine version string.

        Returns:
            Server version string or None if failed
        """
        try:
            return self.fetch_value("SELECT @@VERSION AS server_version")
        except pyodbc.Error as e:
            logger.error(f"Failed to get server version: {e}")
            return None

    def get_database_name(self) -> Optional[str]:
        """Get the name of the database the connection lands in."""
        try:
            return self.fetch_value("SELECT DB_NAME() AS database_name")
        except pyodbc.Error as e:
            logger.error(f"Failed to get database name: {e}")
            return None
