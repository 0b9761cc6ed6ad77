"""Credentials management for named warehouse connections."""

import os
import logging
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, asdict
from datetime import datetime

import yaml

from ..utils.encryption import SecretCipher

logger = logging.getLogger(__name__)


@dataclass
class WarehouseCredentials:
    """Stored connection profile for a warehouse."""
    connection_id: str
    source_type: str
    server: str
    database_name: str
    authentication: str
    username: Optional[str] = None
    password: Optional[str] = None
    driver: Optional[str] = None
    is_active: bool = True
    description: Optional[str] = None


class CredentialsManager:
    """Stores connection profiles in a local YAML file with encrypted secrets."""

    def __init__(self, store_file: str, cipher: SecretCipher):
        """Initialize credentials manager.

        Args:
            store_file: Path to the YAML credentials file (``~`` is expanded)
            cipher: Cipher used for the password field
        """
        self.store_file = Path(os.path.expanduser(store_file))
        self.cipher = cipher

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self.store_file.exists():
            return {}
        with open(self.store_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        return data.get('connections') or {}

    def _save(self, connections: Dict[str, Dict[str, Any]]) -> None:
        self.store_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.store_file, 'w', encoding='utf-8') as f:
            yaml.safe_dump({'connections': connections}, f, sort_keys=True)
        os.chmod(self.store_file, 0o600)

    def get_credentials(self, connection_id: str) -> Optional[WarehouseCredentials]:
        """Get credentials for a specific connection ID.

        Args:
            connection_id: Connection identifier

        Returns:
            WarehouseCredentials object or None if not found or inactive
        """
        record = self._load().get(connection_id)
        if not record or not record.get('is_active', True):
            logger.warning(f"No active credentials found for connection_id: {connection_id}")
            return None

        return WarehouseCredentials(
            connection_id=connection_id,
            source_type=record.get('source_type', 'fabric'),
            server=record['server'],
            database_name=record['database_name'],
            authentication=record.get('authentication'),
            username=record.get('username'),
            password=self.cipher.decrypt(record.get('password_encrypted')),
            driver=record.get('driver'),
            is_active=record.get('is_active', True),
            description=record.get('description')
        )

    def save_credentials(self, credentials: WarehouseCredentials) -> bool:
        """Save or update credentials.

        Args:
            credentials: WarehouseCredentials object to save

        Returns:
            True if successful, False otherwise
        """
        try:
            connections = self._load()
            record = asdict(credentials)
            record.pop('connection_id')
            record['password_encrypted'] = self.cipher.encrypt(record.pop('password'))

            existing = connections.get(credentials.connection_id) or {}
            now = datetime.now().isoformat()
            record['created_at'] = existing.get('created_at', now)
            record['updated_at'] = now

            connections[credentials.connection_id] = record
            self._save(connections)
            logger.info(f"Saved credentials for connection_id: {credentials.connection_id}")
            return True
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to save credentials for {credentials.connection_id}: {e}")
            return False

    def list_credentials(self) -> List[Dict[str, Any]]:
        """List stored credentials without their secrets."""
        result = []
        for connection_id, record in sorted(self._load().items()):
            result.append({
                'connection_id': connection_id,
                'source_type': record.get('source_type'),
                'server': record.get('server'),
                'database_name': record.get('database_name'),
                'authentication': record.get('authentication'),
                'username': record.get('username'),
                'is_active': record.get('is_active', True),
                'description': record.get('description'),
            })
        return result

    def delete_credentials(self, connection_id: str) -> bool:
        """Delete credentials for a connection ID.

        Returns:
            True if a profile was removed, False if none existed
        """
        connections = self._load()
        if connection_id not in connections:
            logger.warning(f"No credentials to delete for connection_id: {connection_id}")
            return False

        del connections[connection_id]
        self._save(connections)
        logger.info(f"Deleted credentials for connection_id: {connection_id}")
        return True
