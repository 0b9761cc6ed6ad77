"""Report models package."""

from .report_models import (
    TableStatistic,
    PermissionEntry,
    StatisticsReport,
    PermissionReport
)

__all__ = [
    'TableStatistic',
    'PermissionEntry',
    'StatisticsReport',
    'PermissionReport'
]
