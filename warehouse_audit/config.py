"""Configuration management for the Fabric Warehouse audit app."""

import os
from pathlib import Path
from typing import Dict, List, Optional, Any
import yaml
from dataclasses import dataclass, field


DEFAULT_DRIVER = "ODBC Driver 18 for SQL Server"
DEFAULT_AUTHENTICATION = "ActiveDirectoryInteractive"
DEFAULT_PORT = 1433

# Authentication modes that need both a user and a secret
SECRET_AUTHENTICATIONS = (
    "SqlPassword",
    "ActiveDirectoryPassword",
    "ActiveDirectoryServicePrincipal",
)


def quote_odbc_value(value: str, always: bool = False) -> str:
    """Brace-quote a connection string value that holds ODBC delimiters.

    Inside braces a literal '}' is written as '}}'.
    """
    if always or any(ch in value for ch in ";{}=") or value != value.strip():
        return "{" + value.replace("}", "}}") + "}"
    return value


@dataclass
class WarehouseConfig:
    """Warehouse (SQL endpoint) connection configuration."""
    connection_string: Optional[str] = None
    server: Optional[str] = None
    database: Optional[str] = None
    driver: str = DEFAULT_DRIVER
    authentication: str = DEFAULT_AUTHENTICATION
    user: Optional[str] = None
    password: Optional[str] = None
    encrypt: bool = True
    login_timeout: int = 30

    def get_connection_string(self) -> str:
        """Get the ODBC connection string for the warehouse."""
        if self.connection_string:
            return self.connection_string

        if not all([self.server, self.database]):
            raise ValueError("Missing required warehouse connection parameters (server, database)")

        if self.authentication in SECRET_AUTHENTICATIONS and not all([self.user, self.password]):
            raise ValueError(f"Authentication '{self.authentication}' requires both user and password")

        server = self.server if "," in self.server else f"{self.server},{DEFAULT_PORT}"
        parts = [
            f"Driver={quote_odbc_value(self.driver, always=True)}",
            f"Server={quote_odbc_value(server)}",
            f"Database={quote_odbc_value(self.database)}",
            f"Encrypt={'yes' if self.encrypt else 'no'}",
            "TrustServerCertificate=no",
        ]
        if self.authentication:
            parts.append(f"Authentication={quote_odbc_value(self.authentication)}")
        if self.user:
            parts.append(f"UID={quote_odbc_value(self.user)}")
        if self.password:
            parts.append(f"PWD={quote_odbc_value(self.password)}")
        return ";".join(parts) + ";"


@dataclass
class OutputConfig:
    """Output configuration."""
    json_dir: str = "./output/json"
    csv_dir: str = "./output/csv"
    create_dirs: bool = True


@dataclass
class ReportsConfig:
    """Defaults applied to the report commands."""
    principal_name: Optional[str] = None
    schemas: List[str] = field(default_factory=list)


@dataclass
class EncryptionConfig:
    """Encryption configuration."""
    master_key: Optional[str] = None


@dataclass
class CredentialsConfig:
    """Location of the stored connection profiles."""
    store_file: str = "~/.warehouse_audit/credentials.yml"


@dataclass
class AppConfig:
    """Main application configuration."""
    warehouse: WarehouseConfig
    output: OutputConfig = field(default_factory=OutputConfig)
    reports: ReportsConfig = field(default_factory=ReportsConfig)
    encryption: EncryptionConfig = field(default_factory=EncryptionConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)

    @classmethod
    def from_file(cls, config_path: str) -> "AppConfig":
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "AppConfig":
        """Build configuration from an already parsed mapping."""
        wh_config = config_data.get('warehouse') or {}
        warehouse = WarehouseConfig(
            connection_string=wh_config.get('connection_string'),
            server=wh_config.get('server'),
            database=wh_config.get('database'),
            driver=wh_config.get('driver', DEFAULT_DRIVER),
            authentication=wh_config.get('authentication', DEFAULT_AUTHENTICATION),
            user=wh_config.get('user'),
            password=wh_config.get('password'),
            encrypt=wh_config.get('encrypt', True),
            login_timeout=wh_config.get('login_timeout', 30)
        )

        output_data = config_data.get('output') or {}
        output = OutputConfig(
            json_dir=output_data.get('json_dir', './output/json'),
            csv_dir=output_data.get('csv_dir', './output/csv'),
            create_dirs=output_data.get('create_dirs', True)
        )

        reports_data = config_data.get('reports') or {}
        reports = ReportsConfig(
            principal_name=reports_data.get('principal_name'),
            schemas=reports_data.get('schemas') or []
        )

        encryption_data = config_data.get('encryption') or {}
        encryption = EncryptionConfig(
            master_key=encryption_data.get('master_key')
        )

        credentials_data = config_data.get('credentials') or {}
        credentials = CredentialsConfig(
            store_file=credentials_data.get('store_file', CredentialsConfig.store_file)
        )

        return cls(
            warehouse=warehouse,
            output=output,
            reports=reports,
            encryption=encryption,
            credentials=credentials
        )

    def get_encryption_key(self) -> Optional[str]:
        """Get the encryption key from config."""
        return self.encryption.master_key

    def load_environment_variables(self) -> None:
        """Load configuration from environment variables if not set in config file."""
        connection_string = os.getenv('FABRIC_SQL_CONNECTION_STRING')
        if not self.warehouse.connection_string and connection_string:
            self.warehouse.connection_string = connection_string

        # Individual parameters only fill gaps left by the file
        if not self.warehouse.server:
            self.warehouse.server = os.getenv('FABRIC_SQL_SERVER')
        if not self.warehouse.database:
            self.warehouse.database = os.getenv('FABRIC_SQL_DATABASE')
        if not self.warehouse.user:
            self.warehouse.user = os.getenv('FABRIC_SQL_USER')
        if not self.warehouse.password:
            self.warehouse.password = os.getenv('FABRIC_SQL_PASSWORD')

        authentication = os.getenv('FABRIC_SQL_AUTHENTICATION')
        if authentication:
            self.warehouse.authentication = authentication
