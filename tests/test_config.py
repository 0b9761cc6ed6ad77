"""Tests for configuration management."""

import pytest
import tempfile
import os
from unittest.mock import patch
from warehouse_audit.config import (
    AppConfig, WarehouseConfig, OutputConfig, ReportsConfig, DEFAULT_DRIVER, quote_odbc_value
)


class TestWarehouseConfig:
    """Test WarehouseConfig class."""

    def test_explicit_connection_string(self):
        """Test that an explicit connection string is returned untouched."""
        config = WarehouseConfig(connection_string="Driver={X};Server=s;Database=d;")
        assert config.get_connection_string() == "Driver={X};Server=s;Database=d;"

    def test_individual_parameters(self):
        """Test building the connection string from parts."""
        config = WarehouseConfig(
            server="abc.datawarehouse.fabric.microsoft.com",
            database="Sales",
            user="someone@contoso.com"
        )
        expected = (
            f"Driver={{{DEFAULT_DRIVER}}};"
            "Server=abc.datawarehouse.fabric.microsoft.com,1433;"
            "Database=Sales;"
            "Encrypt=yes;"
            "TrustServerCertificate=no;"
            "Authentication=ActiveDirectoryInteractive;"
            "UID=someone@contoso.com;"
        )
        assert config.get_connection_string() == expected

    def test_explicit_port_is_kept(self):
        """Test that a server with a port is not given a second one."""
        config = WarehouseConfig(server="host,1500", database="Sales")
        assert "Server=host,1500;" in config.get_connection_string()

    def test_service_principal_includes_secret(self):
        """Test service principal authentication with client id and secret."""
        config = WarehouseConfig(
            server="host",
            database="Sales",
            authentication="ActiveDirectoryServicePrincipal",
            user="client-id",
            password="secret"
        )
        connection_string = config.get_connection_string()
        assert "Authentication=ActiveDirectoryServicePrincipal;" in connection_string
        assert "UID=client-id;" in connection_string
        assert "PWD=secret;" in connection_string

    def test_password_with_delimiters_is_quoted(self):
        """Test that a secret cannot add or override connection string keys."""
        config = WarehouseConfig(
            server="host",
            database="Sales",
            authentication="SqlPassword",
            user="u",
            password="ab;Database=master}x"
        )
        connection_string = config.get_connection_string()

        assert connection_string == (
            f"Driver={{{DEFAULT_DRIVER}}};"
            "Server=host,1433;"
            "Database=Sales;"
            "Encrypt=yes;"
            "TrustServerCertificate=no;"
            "Authentication=SqlPassword;"
            "UID=u;"
            "PWD={ab;Database=master}}x};"
        )

    def test_quote_odbc_value(self):
        """Test brace quoting of connection string values."""
        assert quote_odbc_value("plain") == "plain"
        assert quote_odbc_value("a;b") == "{a;b}"
        assert quote_odbc_value("a}b") == "{a}}b}"
        assert quote_odbc_value(" padded") == "{ padded}"
        assert quote_odbc_value("ODBC Driver 18 for SQL Server", always=True) == \
            "{ODBC Driver 18 for SQL Server}"

    def test_missing_parameters(self):
        """Test error when server or database is missing."""
        config = WarehouseConfig(server="host")
        with pytest.raises(ValueError):
            config.get_connection_string()

    def test_secret_authentication_requires_password(self):
        """Test error when password authentication has no password."""
        config = WarehouseConfig(
            server="host",
            database="Sales",
            authentication="ActiveDirectoryPassword",
            user="someone@contoso.com"
        )
        with pytest.raises(ValueError):
            config.get_connection_string()


class TestAppConfig:
    """Test AppConfig class."""

    def test_from_file(self):
        """Test loading configuration from YAML file."""
        config_data = """
warehouse:
  server: "abc.datawarehouse.fabric.microsoft.com"
  database: "Sales"
  authentication: "ActiveDirectoryServicePrincipal"
  user: "client-id"
  login_timeout: 45
reports:
  principal_name: "analyst@contoso.com"
  schemas:
    - dbo
    - staging
output:
  json_dir: "./test_output"
credentials:
  store_file: "/tmp/creds.yml"
encryption:
  master_key: "k"
"""

        with tempfile.NamedTemporaryFile(mode='w', suffix='.yml', delete=False) as f:
            f.write(config_data)
            f.flush()

        try:
            config = AppConfig.from_file(f.name)

            assert config.warehouse.server == "abc.datawarehouse.fabric.microsoft.com"
            assert config.warehouse.database == "Sales"
            assert config.warehouse.authentication == "ActiveDirectoryServicePrincipal"
            assert config.warehouse.driver == DEFAULT_DRIVER
            assert config.warehouse.login_timeout == 45
            assert config.reports.principal_name == "analyst@contoso.com"
            assert config.reports.schemas == ["dbo", "staging"]
            assert config.output.json_dir == "./test_output"
            assert config.output.csv_dir == "./output/csv"
            assert config.credentials.store_file == "/tmp/creds.yml"
            assert config.get_encryption_key() == "k"
        finally:
            os.unlink(f.name)

    def test_empty_sections(self):
        """Test that empty or missing sections fall back to defaults."""
        config = AppConfig.from_dict({'warehouse': None, 'encryption': None})

        assert config.warehouse.server is None
        assert config.reports.principal_name is None
        assert config.reports.schemas == []
        assert config.get_encryption_key() is None
        assert config.credentials.store_file == "~/.warehouse_audit/credentials.yml"

    def test_file_not_found(self):
        """Test error when config file doesn't exist."""
        with pytest.raises(FileNotFoundError):
            AppConfig.from_file("nonexistent.yml")

    def test_load_environment_variables(self):
        """Test loading connection settings from environment variables."""
        env = {
            'FABRIC_SQL_SERVER': 'envhost',
            'FABRIC_SQL_DATABASE': 'envdb',
            'FABRIC_SQL_USER': 'envuser',
            'FABRIC_SQL_PASSWORD': 'envpass',
            'FABRIC_SQL_AUTHENTICATION': 'ActiveDirectoryPassword',
        }

        with patch.dict(os.environ, env, clear=True):
            config = AppConfig(warehouse=WarehouseConfig())
            config.load_environment_variables()

        assert config.warehouse.server == 'envhost'
        assert config.warehouse.database == 'envdb'
        assert config.warehouse.user == 'envuser'
        assert config.warehouse.password == 'envpass'
        assert config.warehouse.authentication == 'ActiveDirectoryPassword'
        assert config.warehouse.connection_string is None

    def test_environment_does_not_override_file(self):
        """Test that values from the file win over the environment."""
        with patch.dict(os.environ, {'FABRIC_SQL_SERVER': 'envhost'}, clear=True):
            config = AppConfig(warehouse=WarehouseConfig(server="filehost"))
            config.load_environment_variables()

        assert config.warehouse.server == "filehost"

    def test_connection_string_from_environment(self):
        """Test picking up a full connection string."""
        with patch.dict(os.environ, {'FABRIC_SQL_CONNECTION_STRING': 'Driver={X};'}, clear=True):
            config = AppConfig(warehouse=WarehouseConfig())
            config.load_environment_variables()

        assert config.warehouse.get_connection_string() == 'Driver={X};'


class TestOutputConfig:
    """Test OutputConfig and ReportsConfig defaults."""

    def test_default_values(self):
        """Test default output configuration values."""
        config = OutputConfig()

        assert config.json_dir == "./output/json"
        assert config.csv_dir == "./output/csv"
        assert config.create_dirs is True

    def test_reports_defaults_are_independent(self):
        """Test that each ReportsConfig gets its own schema list."""
        first = ReportsConfig()
        second = ReportsConfig()
        first.schemas.append("dbo")

        assert second.schemas == []
