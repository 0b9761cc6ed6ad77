"""Tests for the warehouse connection, source and connector factory."""

import pytest
import pyodbc
from unittest.mock import Mock, MagicMock, patch

from warehouse_audit.config import AppConfig, WarehouseConfig
from warehouse_audit.connector import BaseConnector, ConnectorFactory, SourceConnection
from warehouse_audit.connector.fabric import FabricWarehouseConnector, WarehouseSource
from warehouse_audit.db.connection import WarehouseConnection
from warehouse_audit.services import ConnectionService
from warehouse_audit.credentials import WarehouseCredentials


class FakeCursor:
    """Cursor returning a list of result sets, the first one possibly empty."""

    def __init__(self, result_sets):
        self.result_sets = list(result_sets)
        self.executed = []
        self.closed = False

    @property
    def description(self):
        columns, _ = self.result_sets[0]
        return [(name,) for name in columns] if columns is not None else None

    def execute(self, sql, *params):
        self.executed.append((sql, params))

    def nextset(self):
        if len(self.result_sets) > 1:
            self.result_sets.pop(0)
            return True
        return False

    def fetchall(self):
        return self.result_sets[0][1]

    def close(self):
        self.closed = True


def source_connection():
    return SourceConnection(
        source_type='fabric',
        connection_string='Driver={ODBC Driver 18 for SQL Server};Server=host,1433;Database=Sales;',
        credentials={'server': 'host', 'database': 'Sales', 'username': 'me',
                     'authentication': 'ActiveDirectoryInteractive'}
    )


@pytest.fixture
def config():
    return AppConfig(warehouse=WarehouseConfig(server="host", database="Sales"))


class TestWarehouseConnection:
    """Test WarehouseConnection over a mocked pyodbc."""

    @patch('warehouse_audit.db.connection.pyodbc.connect')
    def test_fetch_rows(self, mock_connect):
        """Test that rows are keyed by column alias."""
        cursor = FakeCursor([(['schema_name'], [('dbo',), ('staging',)])])
        mock_connect.return_value.cursor.return_value = cursor

        rows = WarehouseConnection("dsn", login_timeout=5).fetch_rows("SELECT 1")

        assert rows == [{'schema_name': 'dbo'}, {'schema_name': 'staging'}]
        mock_connect.assert_called_once_with("dsn", timeout=5)
        assert cursor.closed
        mock_connect.return_value.close.assert_called_once()

    @patch('warehouse_audit.db.connection.pyodbc.connect')
    def test_fetch_rows_skips_declare(self, mock_connect):
        """Test that a batch starting with DECLARE still returns its rows."""
        cursor = FakeCursor([(None, []), (['principal_name'], [('analyst',)])])
        mock_connect.return_value.cursor.return_value = cursor

        rows = WarehouseConnection("dsn").fetch_rows("DECLARE ...", ('analyst',))

        assert rows == [{'principal_name': 'analyst'}]
        assert cursor.executed == [("DECLARE ...", (('analyst',),))]

    @patch('warehouse_audit.db.connection.pyodbc.connect')
    def test_fetch_value(self, mock_connect):
        """Test reading a single value."""
        mock_connect.return_value.cursor.return_value = FakeCursor([(['ok'], [(1,)])])
        assert WarehouseConnection("dsn").fetch_value("SELECT 1 AS ok") == 1

    @patch('warehouse_audit.db.connection.pyodbc.connect')
    def test_connection_failure(self, mock_connect):
        """Test that driver errors fail the connection test."""
        mock_connect.side_effect = pyodbc.Error("08001", "login timeout")

        connection = WarehouseConnection("dsn")

        assert connection.test_connection() is False
        assert connection.get_database_name() is None
        with pytest.raises(pyodbc.Error):
            connection.fetch_rows("SELECT 1")


class TestWarehouseSource:
    """Test WarehouseSource with a mocked connection."""

    def setup_method(self):
        """Set up test fixtures."""
        self.db_connection = Mock(spec=WarehouseConnection)
        self.db_connection.get_database_name.return_value = "Sales"
        self.source = WarehouseSource(self.db_connection, AppConfig(warehouse=WarehouseConfig()))

    def test_extract_table_statistics(self):
        """Test that statistics rows become a labeled report."""
        self.db_connection.fetch_rows.return_value = [{
            'database_name': 'Sales', 'schema_name': 'dbo', 'table_name': 'orders',
            'statistics_name': 's1', 'stats_columns': 'id', 'auto_created': True,
            'user_created': False, 'no_recompute': False, 'has_filter': False,
            'filter_definition': None, 'is_temporary': False,
            'generation_method': 'Statistics created by auto create statistics',
        }]

        report = self.source.extract_table_statistics(schemas=['dbo'])

        assert report.database_name == 'Sales'
        assert report.entries[0].auto_created == 'Auto-created'
        self.db_connection.get_database_name.assert_not_called()

    def test_extract_table_statistics_empty(self):
        """Test that an empty warehouse still reports its name."""
        self.db_connection.fetch_rows.return_value = []

        report = self.source.extract_table_statistics()

        assert report.database_name == 'Sales'
        assert report.entries == []

    def test_extract_permissions_binds_principal(self):
        """Test that the principal is passed as a parameter to both queries."""
        self.db_connection.fetch_rows.side_effect = [
            [{'principal_name': 'analyst', 'principal_type': 'SQL_USER',
              'authentication_type': 'INSTANCE', 'state_desc': 'GRANT',
              'permission_name': 'CONNECT', 'permission_class': 0}],
            [],
        ]

        report = self.source.extract_permissions('analyst')

        for call in self.db_connection.fetch_rows.call_args_list:
            assert call.args[1] == ('analyst',)
        assert report.principal_name == 'analyst'
        assert report.entries[0].securable == 'Database::Sales'

    def test_get_available_schemas(self):
        """Test listing schemas."""
        self.db_connection.fetch_rows.return_value = [{'schema_name': 'dbo'}, {'schema_name': 'staging'}]
        assert self.source.get_available_schemas() == ['dbo', 'staging']


class TestConnectorFactory:
    """Test ConnectorFactory."""

    def test_supported_source_types(self):
        """Test the registered source types."""
        types = ConnectorFactory.get_supported_source_types()
        assert 'fabric' in types
        assert 'sqlserver' in types

    def test_create_fabric_connector(self, config):
        """Test creating the Fabric connector."""
        connector = ConnectorFactory.create_connector(source_connection(), config)
        assert isinstance(connector, FabricWarehouseConnector)

    def test_unknown_source_type(self, config):
        """Test that unknown source types give no connector."""
        connection = source_connection()
        connection.source_type = 'oracle'
        assert ConnectorFactory.create_connector(connection, config) is None

    def test_register_rejects_non_connectors(self):
        """Test that only BaseConnector subclasses can be registered."""
        with pytest.raises(ValueError):
            ConnectorFactory.register_connector('bogus', object)

    def test_register_connector(self):
        """Test registering a custom connector."""
        with patch.dict(ConnectorFactory._connectors):
            ConnectorFactory.register_connector('Custom', FabricWarehouseConnector)
            assert 'custom' in ConnectorFactory.get_supported_source_types()
        assert 'custom' not in ConnectorFactory.get_supported_source_types()


class TestFabricWarehouseConnector:
    """Test FabricWarehouseConnector."""

    def test_get_connection_info(self, config):
        """Test that connection info shows the first line of the version."""
        connector = FabricWarehouseConnector(source_connection(), config)
        connector.db_connection = MagicMock()
        connector.db_connection.get_server_version.return_value = "Microsoft Azure SQL Data Warehouse\nBuild 12"
        connector.source.db_connection = connector.db_connection
        connector.db_connection.get_database_name.return_value = "Sales"

        info = connector.get_connection_info()

        assert info['server_version'] == "Microsoft Azure SQL Data Warehouse"
        assert info['database'] == "Sales"
        assert info['connection_status'] == 'connected'

    def test_is_base_connector(self):
        """Test that the connector implements the base interface."""
        assert issubclass(FabricWarehouseConnector, BaseConnector)


class TestConnectionService:
    """Test ConnectionService."""

    def test_connection_from_config(self, config):
        """Test using the warehouse section of the configuration."""
        connection = ConnectionService(config).create_source_connection()

        assert connection.source_type == 'fabric'
        assert 'Server=host,1433;' in connection.connection_string
        assert connection.credentials['connection_name'] == 'config'

    def test_connection_from_profile(self, config):
        """Test using a stored profile."""
        service = ConnectionService(config)
        service._credentials_manager = Mock()
        service._credentials_manager.get_credentials.return_value = WarehouseCredentials(
            connection_id='prod', source_type='sqlserver', server='other',
            database_name='Finance', authentication='SqlPassword',
            username='sa', password='pw'
        )

        connection = service.create_source_connection('prod')

        assert connection.source_type == 'sqlserver'
        assert 'Database=Finance;' in connection.connection_string
        assert 'PWD=pw;' in connection.connection_string
        assert connection.credentials['connection_name'] == 'prod'

    def test_missing_profile(self, config):
        """Test that a missing profile gives no connection."""
        service = ConnectionService(config)
        service._credentials_manager = Mock()
        service._credentials_manager.get_credentials.return_value = None

        assert service.create_source_connection('missing') is None

    def test_incomplete_config(self):
        """Test that an incomplete warehouse section raises ValueError."""
        service = ConnectionService(AppConfig(warehouse=WarehouseConfig(server="host")))
        with pytest.raises(ValueError):
            service.create_source_connection()
