"""Report extractors: catalog rows in, labeled report entries out."""

from .statistics_extractor import StatisticsExtractor
from .permission_extractor import PermissionExtractor, FIXED_DATABASE_ROLES

__all__ = ['StatisticsExtractor', 'PermissionExtractor', 'FIXED_DATABASE_ROLES']
