"""Resolves which warehouse to talk to: config file, environment or a stored profile."""

import logging
from typing import Optional

from ..config import AppConfig, WarehouseConfig, DEFAULT_DRIVER
from ..connector import SourceConnection
from ..credentials.manager import CredentialsManager, WarehouseCredentials
from ..utils.encryption import get_cipher

logger = logging.getLogger(__name__)


class ConnectionService:
    """Builds source connections from configuration or stored credentials."""

    def __init__(self, config: AppConfig):
        self.config = config
        self._credentials_manager: Optional[CredentialsManager] = None

    def get_credentials_manager(self) -> CredentialsManager:
        """Get credentials manager instance.

        Returns:
            CredentialsManager backed by the configured store file
        """
        if self._credentials_manager is None:
            cipher = get_cipher(self.config.get_encryption_key())
            self._credentials_manager = CredentialsManager(
                self.config.credentials.store_file, cipher
            )
        return self._credentials_manager

    @staticmethod
    def warehouse_config_from_credentials(credentials: WarehouseCredentials,
                                          login_timeout: int = 30) -> WarehouseConfig:
        return WarehouseConfig(
            server=credentials.server,
            database=credentials.database_name,
            driver=credentials.driver or DEFAULT_DRIVER,
            authentication=credentials.authentication,
            user=credentials.username,
            password=credentials.password or None,
            login_timeout=login_timeout
        )

    def create_source_connection(self, connection_id: Optional[str] = None) -> Optional[SourceConnection]:
        """Create a source connection.

        Args:
            connection_id: Stored profile to use. None uses the ``warehouse``
                section of the configuration (and environment variables).

        Returns:
            SourceConnection object or None if the profile does not exist

        Raises:
            ValueError: If the configuration lacks required connection parameters
        """
        if connection_id:
            credentials = self.get_credentials_manager().get_credentials(connection_id)
            if not credentials:
                logger.error(f"No credentials found for connection_id: {connection_id}")
                return None
            warehouse = self.warehouse_config_from_credentials(
                credentials, self.config.warehouse.login_timeout
            )
            source_type = credentials.source_type
        else:
            warehouse = self.config.warehouse
            source_type = 'fabric'

        return SourceConnection(
            source_type=source_type,
            connection_string=warehouse.get_connection_string(),
            credentials={
                'server': warehouse.server,
                'database': warehouse.database,
                'username': warehouse.user,
                'authentication': warehouse.authentication,
                'connection_name': connection_id or 'config'
            },
            login_timeout=warehouse.login_timeout
        )
