"""Report row models for the table statistics and permission reports."""

from typing import Dict, List, Any, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime

import pandas as pd


@dataclass
class TableStatistic:
    """One statistics object on a user table."""
    database_name: Optional[str] = None
    schema_name: Optional[str] = None
    table_name: Optional[str] = None
    statistics_name: Optional[str] = None
    stats_columns: Optional[str] = None
    auto_created: str = ""
    user_created: str = ""
    auto_update: str = ""
    filter_applied: str = ""
    filter_definition: Optional[str] = None
    statistics_type: str = ""
    generation_method: Optional[str] = None

    # attribute name -> report column name, in output order
    COLUMNS = (
        ("database_name", "DatabaseName"),
        ("schema_name", "SchemaName"),
        ("table_name", "TableName"),
        ("statistics_name", "StatisticsName"),
        ("stats_columns", "StatsColumns"),
        ("auto_created", "AutoCreated"),
        ("user_created", "UserCreated"),
        ("auto_update", "AutoUpdate"),
        ("filter_applied", "FilterApplied"),
        ("filter_definition", "FilterDefinition"),
        ("statistics_type", "StatisticsType"),
        ("generation_method", "GenerationMethod"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary keyed by report column name."""
        return {column: getattr(self, attr) for attr, column in self.COLUMNS}


@dataclass
class PermissionEntry:
    """One explicit or implicit permission held by a database principal."""
    database_principal: Optional[str] = None
    permission_type: str = ""
    permission_derived_from: Optional[str] = None
    principal_type: Optional[str] = None
    authentication: Optional[str] = None
    action: Optional[str] = None
    permission: Optional[str] = None
    object_type: Optional[str] = None
    securable: Optional[str] = None
    column_name: Optional[str] = None

    COLUMNS = (
        ("database_principal", "DatabasePrincipal"),
        ("permission_type", "PermissionType"),
        ("permission_derived_from", "PermissionDerivedFrom"),
        ("principal_type", "PrincipalType"),
        ("authentication", "Authentication"),
        ("action", "Action"),
        ("permission", "Permission"),
        ("object_type", "ObjectType"),
        ("securable", "Securable"),
        ("column_name", "ColumnName"),
    )

    def group_key(self) -> Tuple[Optional[str], ...]:
        """Every field except the column name; rows sharing it are merged."""
        return tuple(getattr(self, attr) for attr, _ in self.COLUMNS if attr != "column_name")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary keyed by report column name."""
        return {column: getattr(self, attr) for attr, column in self.COLUMNS}


@dataclass
class StatisticsReport:
    """Table statistics report for one database."""
    database_name: Optional[str]
    entries: List[TableStatistic] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)

    report_type = "table_statistics"
    title = "Table Statistics Analysis"

    @property
    def columns(self) -> List[str]:
        return [column for _, column in TableStatistic.COLUMNS]

    def rows(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows(), columns=self.columns)

    def summary(self) -> Dict[str, int]:
        """Counts shown after the report."""
        return {
            "Statistics": len(self.entries),
            "Tables": len({(e.schema_name, e.table_name) for e in self.entries}),
            "Auto-created": sum(1 for e in self.entries if e.auto_created == "Auto-created"),
            "User-created": sum(1 for e in self.entries if e.user_created == "Created by a user"),
            "Recompute disabled": sum(1 for e in self.entries if e.auto_update == "Recompute disabled"),
            "Filtered": sum(1 for e in self.entries if e.filter_applied == "Filtered statistics applied"),
            "Temporary": sum(1 for e in self.entries if e.statistics_type == "Temporary statistics"),
        }


@dataclass
class PermissionReport:
    """Explicit and implicit permission report for one database."""
    database_name: Optional[str]
    entries: List[PermissionEntry] = field(default_factory=list)
    principal_name: Optional[str] = None
    generated_at: datetime = field(default_factory=datetime.now)

    report_type = "database_permissions"
    title = "Database Permission Analysis"

    @property
    def columns(self) -> List[str]:
        return [column for _, column in PermissionEntry.COLUMNS]

    def rows(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows(), columns=self.columns)

    def summary(self) -> Dict[str, int]:
        """Counts shown after the report."""
        return {
            "Permissions": len(self.entries),
            "Principals": len({e.database_principal for e in self.entries}),
            "Explicit": sum(1 for e in self.entries if e.permission_type == "<explicit>"),
            "Implicit": sum(1 for e in self.entries if e.permission_type == "<implicit>"),
            "Deny": sum(1 for e in self.entries if e.action == "DENY"),
        }
