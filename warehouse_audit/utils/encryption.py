"""Encryption of connection secrets (passwords, client secrets) kept on disk."""

import base64
import os
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger(__name__)

MASTER_KEY_ENV = 'WAREHOUSE_AUDIT_MASTER_KEY'
DEFAULT_KEY_FILE = Path.home() / '.warehouse_audit' / 'encryption_key.json'

KDF_SALT = b'warehouse_audit_salt'
KDF_ITERATIONS = 100000


class KeyFile:
    """JSON file holding a generated master key, readable only by its owner."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else DEFAULT_KEY_FILE

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> Optional[str]:
        """Return the stored key, or None when there is no usable file."""
        if not self.path.exists():
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return json.load(f).get('key')
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable key file {self.path}: {e}")
            return None

    def write(self, key: str) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump({'key': key, 'created_at': datetime.now().isoformat()}, f, indent=2)
            os.chmod(self.path, 0o600)
            return True
        except OSError as e:
            logger.error(f"Failed to write key file {self.path}: {e}")
            return False


def resolve_master_key(master_key: Optional[str] = None, key_file: Optional[KeyFile] = None) -> str:
    """Find the master key used to protect stored secrets.

    Lookup order: the explicit key (from config), ``WAREHOUSE_AUDIT_MASTER_KEY``,
    the key file. When none is set a key is generated and written to the key file.

    Args:
        master_key: Key from the configuration, if any
        key_file: Key file to read and write; defaults to ~/.warehouse_audit/encryption_key.json

    Returns:
        Master key text
    """
    if master_key:
        return master_key

    from_env = os.getenv(MASTER_KEY_ENV)
    if from_env:
        return from_env

    key_file = key_file or KeyFile()
    stored = key_file.read()
    if stored:
        return stored

    generated = Fernet.generate_key().decode()
    if key_file.write(generated):
        logger.info(f"Generated new master key in {key_file.path}")
    else:
        logger.warning(f"Generated a master key but could not store it; set {MASTER_KEY_ENV} "
                       f"or stored secrets will not be readable next time")
    return generated


class SecretCipher:
    """Fernet cipher keyed by PBKDF2 over the master key."""

    def __init__(self, master_key: str):
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=KDF_SALT,
            iterations=KDF_ITERATIONS,
        )
        self._fernet = Fernet(base64.urlsafe_b64encode(kdf.derive(master_key.encode())))

    def encrypt(self, secret: Optional[str]) -> str:
        """Encrypt a secret; empty or missing secrets are stored as ``""``."""
        if not secret:
            return ""
        return self._fernet.encrypt(secret.encode()).decode()

    def decrypt(self, token: Optional[str]) -> str:
        """Decrypt a stored secret.

        Raises:
            ValueError: If the token was not produced with this master key
        """
        if not token:
            return ""
        try:
            return self._fernet.decrypt(token.encode()).decode()
        except InvalidToken as e:
            raise ValueError("Cannot decrypt stored secret: wrong master key or corrupted value") from e


def get_cipher(master_key: Optional[str] = None, key_file: Optional[KeyFile] = None) -> SecretCipher:
    """Cipher for the configured (or discovered) master key."""
    return SecretCipher(resolve_master_key(master_key, key_file))
