"""Base classes for warehouse connectors."""

from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional
from dataclasses import dataclass

from ..config import AppConfig
from ..models.report_models import StatisticsReport, PermissionReport


@dataclass
class SourceConnection:
    """Generic source connection information."""
    source_type: str
    connection_string: str
    credentials: Dict[str, Any]
    login_timeout: int = 30


class BaseConnector(ABC):
    """Abstract base class for warehouse connectors."""

    def __init__(self, connection: SourceConnection, config: AppConfig):
        """Initialize connector.

        Args:
            connection: Source connection information
            config: Application configuration
        """
        self.connection = connection
        self.config = config

    @abstractmethod
    def extract_table_statistics(self, schemas: Optional[List[str]] = None,
                                 table: Optional[str] = None) -> StatisticsReport:
        """Build the table statistics report.

        Args:
            schemas: Optional schema filter
            table: Optional table filter

        Returns:
            Table statistics report
        """
        pass

    @abstractmethod
    def extract_permissions(self, principal_name: Optional[str] = None) -> PermissionReport:
        """Build the explicit and implicit permission report.

        Args:
            principal_name: Optional principal filter, None for every principal

        Returns:
            Permission report
        """
        pass

    @abstractmethod
    def get_available_schemas(self) -> List[str]:
        """Get list of available schemas in the source."""
        pass

    @abstractmethod
    def test_connection(self) -> bool:
        """Test the connection to the data source.

        Returns:
            True if connection successful, False otherwise
        """
        pass

    @abstractmethod
    def get_connection_info(self) -> Dict[str, Any]:
        """Get information about the connection."""
        pass
