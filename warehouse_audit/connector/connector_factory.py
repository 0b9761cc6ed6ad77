"""Source type registry for warehouse connectors."""

import logging
from typing import Dict, List, Optional, Type

from .base_connector import BaseConnector, SourceConnection
from .fabric.fabric_connector import FabricWarehouseConnector
from ..config import AppConfig

logger = logging.getLogger(__name__)


class ConnectorFactory:
    """Picks the connector class for a connection's source type."""

    # A Fabric Warehouse SQL endpoint speaks TDS, so SQL Server shares the connector
    _connectors: Dict[str, Type[BaseConnector]] = {
        'fabric': FabricWarehouseConnector,
        'sqlserver': FabricWarehouseConnector,
    }

    @classmethod
    def create_connector(cls, connection: SourceConnection, config: AppConfig) -> Optional[BaseConnector]:
        """Build the connector for ``connection.source_type``.

        Returns:
            Connector instance, or None (logged) when the type is not registered
        """
        connector_class = cls._connectors.get(connection.source_type.lower())
        if connector_class is None:
            logger.error(
                f"Unsupported source type: {connection.source_type} "
                f"(supported: {', '.join(cls.get_supported_source_types())})"
            )
            return None

        logger.debug(f"Using {connector_class.__name__} for source type {connection.source_type}")
        return connector_class(connection, config)

    @classmethod
    def get_supported_source_types(cls) -> List[str]:
        return sorted(cls._connectors)

    @classmethod
    def register_connector(cls, source_type: str, connector_class: type) -> None:
        """Add or replace the connector used for a source type.

        Raises:
            ValueError: If ``connector_class`` is not a BaseConnector subclass
        """
        if not (isinstance(connector_class, type) and issubclass(connector_class, BaseConnector)):
            raise ValueError(f"{connector_class!r} is not a BaseConnector subclass")

        cls._connectors[source_type.lower()] = connector_class
        logger.info(f"Registered {connector_class.__name__} for source type: {source_type}")
