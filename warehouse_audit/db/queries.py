"""T-SQL catalog queries used by the audit reports."""


class CatalogQueries:
    """Collection of catalog-view queries for a Fabric Warehouse.

    The queries return raw catalog values; labeling and aggregation happen in
    the extractors so the report rules live in one place.
    """

    def get_table_statistics(self) -> str:
        """Get every statistics object on user tables with its column list."""
        return """
            SELECT
                DB_NAME() AS database_name,
                SCHEMA_NAME(o.schema_id) AS schema_name,
                OBJECT_NAME(s.object_id) AS table_name,
                s.name AS statistics_name,
                (
                    SELECT STRING_AGG(cols.name, ', ') WITHIN GROUP (ORDER BY statcols.stats_column_id)
                    FROM sys.stats_columns AS statcols
                    JOIN sys.columns AS cols
                        ON statcols.column_id = cols.column_id
                        AND statcols.object_id = cols.object_id
                    WHERE statcols.stats_id = s.stats_id
                        AND statcols.object_id = s.object_id
                ) AS stats_columns,
                s.auto_created,
                s.user_created,
                s.no_recompute,
                s.has_filter,
                s.filter_definition,
                s.is_temporary,
                s.stats_generation_method_desc AS generation_method
            FROM sys.stats AS s
            INNER JOIN sys.objects AS o
                ON s.object_id = o.object_id
            WHERE o.type_desc NOT IN (N'SYSTEM_TABLE', N'INTERNAL_TABLE')
            ORDER BY schema_name, table_name
        """

    def get_explicit_permissions(self) -> str:
        """Get permissions granted or denied directly to a principal.

        Takes one parameter: the principal name, or NULL for every principal.
        """
        return """
            DECLARE @principalName sysname = ?;

            SELECT
                dbpr.name AS principal_name,
                dbpr.type_desc AS principal_type,
                dbpr.authentication_type_desc AS authentication_type,
                perm.state_desc,
                perm.permission_name,
                perm.class AS permission_class,
                SCHEMA_NAME(obj.schema_id) AS object_schema,
                OBJECT_NAME(perm.major_id) AS object_name,
                obj.type AS object_type,
                obj.type_desc AS object_type_desc,
                CASE WHEN perm.class = 3 THEN SCHEMA_NAME(perm.major_id) END AS class_schema_name,
                col.name AS column_name
            FROM sys.database_permissions AS perm
            INNER JOIN sys.database_principals AS dbpr
                ON perm.grantee_principal_id = dbpr.principal_id
            LEFT JOIN sys.objects AS obj
                ON perm.class = 1 AND perm.major_id = obj.object_id AND obj.is_ms_shipped = 0
            LEFT JOIN sys.columns AS col
                ON perm.class = 1 AND perm.major_id = col.object_id AND perm.minor_id = col.column_id
            WHERE (@principalName IS NULL OR dbpr.name = @principalName)
        """

    def get_implicit_permissions(self) -> str:
        """Get permissions inherited through database role membership.

        Takes one parameter: the member principal name, or NULL for every member.
        Roles without any granted permission still produce one row per member.
        """
        return """
            DECLARE @principalName sysname = ?;

            SELECT
                princ_mem.name AS principal_name,
                princ_mem.type_desc AS principal_type,
                princ_mem.authentication_type_desc AS authentication_type,
                princ_role.name AS role_name,
                pe.state_desc,
                pe.permission_name,
                pe.class AS permission_class,
                SCHEMA_NAME(obj.schema_id) AS object_schema,
                OBJECT_NAME(pe.major_id) AS object_name,
                obj.type AS object_type,
                obj.type_desc AS object_type_desc,
                CASE WHEN pe.class = 3 THEN SCHEMA_NAME(pe.major_id) END AS class_schema_name,
                col.name AS column_name
            FROM sys.database_role_members AS dbrm
            RIGHT OUTER JOIN sys.database_principals AS princ_role
                ON dbrm.role_principal_id = princ_role.principal_id
            LEFT OUTER JOIN sys.database_principals AS princ_mem
                ON dbrm.member_principal_id = princ_mem.principal_id
            LEFT JOIN sys.database_permissions AS pe
                ON pe.grantee_principal_id = princ_role.principal_id
            LEFT JOIN sys.objects AS obj
                ON pe.class = 1 AND pe.major_id = obj.object_id AND obj.is_ms_shipped = 0
            LEFT JOIN sys.columns AS col
                ON pe.class = 1 AND pe.major_id = col.object_id AND pe.minor_id = col.column_id
            WHERE princ_role.type = 'R'
                AND princ_mem.name IS NOT NULL
                AND (@principalName IS NULL OR princ_mem.name = @principalName)
        """

    def get_available_schemas(self) -> str:
        """Get list of user schemas in the warehouse."""
        return """
            SELECT s.name AS schema_name
            FROM sys.schemas AS s
            WHERE s.name NOT IN (N'sys', N'INFORMATION_SCHEMA', N'guest')
                AND s.name NOT LIKE N'db[_]%'
            ORDER BY s.name
        """
