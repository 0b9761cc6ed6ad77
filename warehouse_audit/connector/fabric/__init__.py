"""Fabric Warehouse connector package."""

from .fabric_connector import FabricWarehouseConnector
from .warehouse_source import WarehouseSource

__all__ = ['FabricWarehouseConnector', 'WarehouseSource']
