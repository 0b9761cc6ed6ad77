# Warehouse connection and catalog query modules

from .connection import WarehouseConnection
from .queries import CatalogQueries

__all__ = ['WarehouseConnection', 'CatalogQueries']
