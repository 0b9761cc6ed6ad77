"""Stored connection profiles."""

from .manager import CredentialsManager, WarehouseCredentials

__all__ = ['CredentialsManager', 'WarehouseCredentials']
