"""Connector package for warehouse source types."""

from .base_connector import BaseConnector, SourceConnection
from .connector_factory import ConnectorFactory

__all__ = ['BaseConnector', 'SourceConnection', 'ConnectorFactory']
