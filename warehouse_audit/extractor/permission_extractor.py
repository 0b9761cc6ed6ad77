"""Database permission report building from raw catalog rows."""

import logging
from collections import OrderedDict
from typing import Dict, List, Any, Optional

from ..models.report_models import PermissionEntry, PermissionReport

logger = logging.getLogger(__name__)


EXPLICIT = "<explicit>"
IMPLICIT = "<implicit>"
FDR_ACTION = "IMPLICIT - FDR"
ALL_COLUMNS = "ALL COLUMNS"

# Fixed database roles and the permission set membership implies
FIXED_DATABASE_ROLES = OrderedDict([
    ("db_owner", "CONTROL"),
    ("db_ddladmin", "CREATE, DROP, ALTER ON ANY OBJECTS"),
    ("db_datareader", "SELECT"),
    ("db_datawriter", "INSERT, UPDATE, DELETE"),
    ("db_securityadmin", "Manage Role Membership and Permissions"),
    ("db_accessadmin", "GRANT/REVOKE access to users/roles"),
    ("db_backupoperator", "Can BACKUP DATABASE"),
    ("db_denydatawriter", "DENY INSERT, UPDATE, DELETE"),
    ("db_denydatareader", "DENY SELECT"),
])

# Permission classes in sys.database_permissions
CLASS_DATABASE = 0
CLASS_OBJECT = 1
CLASS_SCHEMA = 3

USER_TABLE = "U"


def format_securable(row: Dict[str, Any], database_name: Optional[str],
                     unknown_object: str = "<UNKNOWN OBJECT>",
                     unknown_schema: str = "<UNKNOWN SCHEMA>") -> Optional[str]:
    """Render the securable a permission applies to.

    Object securables need the owning schema; when the object itself is not
    visible (system-shipped or missing) the result is None.
    """
    permission_class = row.get('permission_class')
    if permission_class == CLASS_DATABASE:
        return f"Database::{database_name}" if database_name is not None else None
    if permission_class == CLASS_OBJECT:
        object_schema = row.get('object_schema')
        if object_schema is None:
            return None
        return f"Object::{object_schema}.{row.get('object_name') or unknown_object}"
    if permission_class == CLASS_SCHEMA:
        return f"Schema::{row.get('class_schema_name') or unknown_schema}"
    return None


def column_for(row: Dict[str, Any]) -> Optional[str]:
    """Column a permission is scoped to, for permissions on user tables only."""
    if row.get('permission_class') == CLASS_OBJECT and _strip(row.get('object_type')) == USER_TABLE:
        return row.get('column_name') or ALL_COLUMNS
    return None


def _strip(value: Optional[str]) -> Optional[str]:
    # sys.objects.type is char(2), so 'U' comes back padded
    return value.strip() if isinstance(value, str) else value


class PermissionExtractor:
    """Combines explicit grants and role-derived permissions into one report."""

    def explicit_entry(self, row: Dict[str, Any], database_name: Optional[str]) -> PermissionEntry:
        """Build an entry for a permission granted directly to a principal."""
        return PermissionEntry(
            database_principal=row.get('principal_name'),
            permission_type=EXPLICIT,
            permission_derived_from=None,
            principal_type=row.get('principal_type'),
            authentication=row.get('authentication_type'),
            action=row.get('state_desc'),
            permission=row.get('permission_name'),
            object_type=row.get('object_type_desc'),
            securable=format_securable(row, database_name),
            column_name=column_for(row)
        )

    def implicit_entry(self, row: Dict[str, Any], database_name: Optional[str]) -> PermissionEntry:
        """Build an entry for a permission inherited through a role.

        Fixed database roles are reported with their documented permission set
        instead of whatever the catalog lists for the role.
        """
        role_name = row.get('role_name')
        if role_name in FIXED_DATABASE_ROLES:
            action = FDR_ACTION
            permission = FIXED_DATABASE_ROLES[role_name]
        else:
            action = row.get('state_desc')
            permission = row.get('permission_name')

        securable = format_securable(
            row, database_name,
            unknown_object="<UNKNOWN_OBJECT>",
            unknown_schema="<UNKNOWN_SCHEMA>"
        )
        if securable is None and database_name is not None:
            securable = f"Database::{database_name}"

        return PermissionEntry(
            database_principal=row.get('principal_name'),
            permission_type=IMPLICIT,
            permission_derived_from=role_name,
            principal_type=row.get('principal_type'),
            authentication=row.get('authentication_type'),
            action=action,
            permission=permission,
            object_type=row.get('object_type_desc'),
            securable=securable,
            column_name=column_for(row)
        )

    def combine(self, entries: List[PermissionEntry]) -> List[PermissionEntry]:
        """Merge entries that differ only by column, joining the column names.

        Args:
            entries: Ungrouped entries, one per catalog row

        Returns:
            One entry per distinct permission, column names joined with ', '
            in first-seen order, or None when no row named a column
        """
        groups: "OrderedDict[tuple, List[PermissionEntry]]" = OrderedDict()
        for entry in entries:
            groups.setdefault(entry.group_key(), []).append(entry)

        combined = []
        for members in groups.values():
            columns = [m.column_name for m in members if m.column_name is not None]
            first = members[0]
            combined.append(PermissionEntry(
                database_principal=first.database_principal,
                permission_type=first.permission_type,
                permission_derived_from=first.permission_derived_from,
                principal_type=first.principal_type,
                authentication=first.authentication,
                action=first.action,
                permission=first.permission,
                object_type=first.object_type,
                securable=first.securable,
                column_name=", ".join(columns) if columns else None
            ))
        return combined

    @staticmethod
    def sort_key(entry: PermissionEntry):
        # NULLs sort first, as in the warehouse
        return (
            entry.database_principal is not None, entry.database_principal or "",
            entry.securable is not None, entry.securable or "",
        )

    def build_report(self, explicit_rows: List[Dict[str, Any]], implicit_rows: List[Dict[str, Any]],
                     database_name: Optional[str], principal_name: Optional[str] = None) -> PermissionReport:
        """Build the permission report.

        Args:
            explicit_rows: Rows from ``CatalogQueries.get_explicit_permissions``
            implicit_rows: Rows from ``CatalogQueries.get_implicit_permissions``
            database_name: Database the rows were read from
            principal_name: Only keep rows for this principal; None keeps all

        Returns:
            Report ordered by principal and securable
        """
        entries = [self.explicit_entry(row, database_name) for row in explicit_rows]
        entries.extend(self.implicit_entry(row, database_name) for row in implicit_rows)

        if principal_name is not None:
            entries = [e for e in entries if e.database_principal == principal_name]

        entries = sorted(self.combine(entries), key=self.sort_key)

        logger.debug(
            f"Built permission report with {len(entries)} entries "
            f"({len(explicit_rows)} explicit rows, {len(implicit_rows)} implicit rows)"
        )
        return PermissionReport(
            database_name=database_name,
            entries=entries,
            principal_name=principal_name
        )
