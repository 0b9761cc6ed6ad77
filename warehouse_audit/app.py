"""Main CLI application for Fabric Warehouse catalog audits."""

import logging
from typing import Optional, List, Union

import typer
from rich.console import Console
from rich.table import Table
from rich.syntax import Syntax
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from .config import AppConfig, DEFAULT_AUTHENTICATION, DEFAULT_DRIVER
from .connector import BaseConnector, ConnectorFactory, SourceConnection
from .credentials.manager import WarehouseCredentials
from .exporters.report_exporter import ReportExporter, OUTPUT_FORMATS
from .models.report_models import StatisticsReport, PermissionReport
from .scripts import list_scripts, load_script
from .services.connection_service import ConnectionService
from .utils import setup_logging

# Initialize Typer app
app = typer.Typer(
    name="warehouse-audit",
    help="Table statistics and permission audits for Microsoft Fabric Warehouse",
    add_completion=False
)

# Initialize Rich console
console = Console()

logger = logging.getLogger(__name__)


def _load_config(config_file: str) -> AppConfig:
    config = AppConfig.from_file(config_file)
    config.load_environment_variables()
    return config


def _connect(config: AppConfig, connection_id: Optional[str]) -> BaseConnector:
    """Resolve the connection, build the connector and check it can log in."""
    source_connection = ConnectionService(config).create_source_connection(connection_id)
    if not source_connection:
        console.print(f"❌ No credentials found for connection_id: {connection_id}", style="red")
        raise typer.Exit(1)

    connector = ConnectorFactory.create_connector(source_connection, config)
    if not connector:
        console.print(f"❌ Unsupported source type: {source_connection.source_type}", style="red")
        raise typer.Exit(1)

    console.print("🔌 Testing warehouse connection...", style="blue")
    if not connector.test_connection():
        console.print("❌ Failed to connect to warehouse", style="red")
        raise typer.Exit(1)

    return connector


def _check_format(output_format: str) -> None:
    if output_format not in OUTPUT_FORMATS:
        console.print(
            f"❌ Unknown format '{output_format}'. Use one of: {', '.join(OUTPUT_FORMATS)}",
            style="red"
        )
        raise typer.Exit(1)


def _cell(value) -> str:
    return "[dim]NULL[/dim]" if value is None else escape(str(value))


def _display_report(report: Union[StatisticsReport, PermissionReport]) -> None:
    """Print every report row as a rich table."""
    title = f"{report.title} - {report.database_name or 'unknown database'}"
    table = Table(title=title, show_lines=False)
    for column in report.columns:
        table.add_column(column, overflow="fold")

    for row in report.rows():
        table.add_row(*(_cell(row[column]) for column in report.columns))

    console.print(table)


def _display_summary(report: Union[StatisticsReport, PermissionReport]) -> None:
    table = Table(title=f"{report.title} Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="magenta")

    for metric, count in report.summary().items():
        table.add_row(metric, str(count))

    console.print(table)


def _output_report(report: Union[StatisticsReport, PermissionReport],
                   output_format: str, config: AppConfig) -> None:
    if output_format == "console":
        _display_report(report)
    else:
        export_results = ReportExporter(config).export_report(report, output_format)
        for result in export_results.values():
            if result['success']:
                console.print(f"✅ {result['message']}", style="green")
            else:
                console.print(f"❌ {result['message']}", style="red")

    _display_summary(report)


@app.command()
def statistics(
    config_file: str = typer.Option("config.yml", "--config", "-c", help="Path to configuration file"),
    connection_id: Optional[str] = typer.Option(None, "--connection-id", help="Stored connection profile to use instead of the config file"),
    schema: Optional[List[str]] = typer.Option(None, "--schema", "-s", help="Only report tables in this schema (repeatable)"),
    table: Optional[str] = typer.Option(None, "--table", "-t", help="Only report this table"),
    output_format: str = typer.Option("console", "--format", "-f", help="Output format (console, json, csv, all)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file path")
):
    """Analyze statistics objects on user tables."""
    setup_logging("DEBUG" if verbose else "INFO", log_file)
    _check_format(output_format)

    try:
        config = _load_config(config_file)
        connector = _connect(config, connection_id)
        schemas = list(schema) if schema else (config.reports.schemas or None)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task("Reading table statistics...", total=None)
            report = connector.extract_table_statistics(schemas, table)
            progress.update(task, description="✅ Table statistics read")

        _output_report(report, output_format, config)

    except typer.Exit:
        raise
    except FileNotFoundError as e:
        console.print(f"❌ Configuration file not found: {e}", style="red")
        raise typer.Exit(1)
    except Exception as e:
        logger.error(f"Error during statistics analysis: {e}")
        console.print(f"❌ Error: {e}", style="red")
        raise typer.Exit(1)


@app.command()
def permissions(
    config_file: str = typer.Option("config.yml", "--config", "-c", help="Path to configuration file"),
    connection_id: Optional[str] = typer.Option(None, "--connection-id", help="Stored connection profile to use instead of the config file"),
    principal: Optional[str] = typer.Option(None, "--principal", "-p", help="Only report this database principal (its explicit grants and what it inherits from roles)"),
    output_format: str = typer.Option("console", "--format", "-f", help="Output format (console, json, csv, all)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file path")
):
    """Analyze explicit and role-derived database permissions."""
    setup_logging("DEBUG" if verbose else "INFO", log_file)
    _check_format(output_format)

    try:
        config = _load_config(config_file)
        connector = _connect(config, connection_id)
        principal_name = principal or config.reports.principal_name

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task("Reading database permissions...", total=None)
            report = connector.extract_permissions(principal_name)
            progress.update(task, description="✅ Database permissions read")

        if principal_name and not report.entries:
            console.print(f"ℹ️  No permissions found for principal: {principal_name}", style="yellow")

        _output_report(report, output_format, config)

    except typer.Exit:
        raise
    except FileNotFoundError as e:
        console.print(f"❌ Configuration file not found: {e}", style="red")
        raise typer.Exit(1)
    except Exception as e:
        logger.error(f"Error during permission analysis: {e}")
        console.print(f"❌ Error: {e}", style="red")
        raise typer.Exit(1)


@app.command()
def test_connection(
    config_file: str = typer.Option("config.yml", "--config", "-c", help="Path to configuration file"),
    connection_id: Optional[str] = typer.Option(None, "--connection-id", help="Stored connection profile to test"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
):
    """Check that the warehouse is reachable and show where the connection lands."""
    setup_logging("DEBUG" if verbose else "INFO")

    try:
        config = _load_config(config_file)
        connector = _connect(config, connection_id)
        info = connector.get_connection_info()

        table = Table(title="Warehouse Connection")
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="magenta")
        for key, value in info.items():
            table.add_row(key, _cell(value))
        console.print(table)
        console.print("✅ Connection successful", style="green")

    except typer.Exit:
        raise
    except FileNotFoundError as e:
        console.print(f"❌ Configuration file not found: {e}", style="red")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"❌ Error: {e}", style="red")
        raise typer.Exit(1)


@app.command()
def schemas(
    config_file: str = typer.Option("config.yml", "--config", "-c", help="Path to configuration file"),
    connection_id: Optional[str] = typer.Option(None, "--connection-id", help="Stored connection profile to use")
):
    """List user schemas in the warehouse."""
    try:
        config = _load_config(config_file)
        connector = _connect(config, connection_id)
        for schema_name in connector.get_available_schemas():
            console.print(schema_name)

    except typer.Exit:
        raise
    except FileNotFoundError as e:
        console.print(f"❌ Configuration file not found: {e}", style="red")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"❌ Error: {e}", style="red")
        raise typer.Exit(1)


@app.command()
def list_sql():
    """List the bundled standalone T-SQL scripts."""
    table = Table(title="Bundled Scripts")
    table.add_column("Name", style="cyan")
    table.add_column("Folder", style="magenta")
    table.add_column("File", style="green")

    for name, folder, filename in list_scripts():
        table.add_row(name, folder, filename)

    console.print(table)


@app.command()
def show_sql(
    name: str = typer.Argument(..., help="Script name, see list-sql"),
    plain: bool = typer.Option(False, "--plain", help="Print raw text without highlighting")
):
    """Print a bundled T-SQL script for use in a Fabric SQL editor."""
    try:
        text = load_script(name)
    except KeyError as e:
        console.print(f"❌ {e.args[0]}", style="red")
        raise typer.Exit(1)

    if plain:
        typer.echo(text)
    else:
        console.print(Syntax(text, "tsql", word_wrap=True))


@app.command()
def credentials_add(
    connection_id: str = typer.Option(..., "--connection-id", help="Connection identifier"),
    server: str = typer.Option(..., "--server", help="Warehouse SQL endpoint host"),
    database: str = typer.Option(..., "--database", help="Warehouse name"),
    authentication: str = typer.Option(DEFAULT_AUTHENTICATION, "--authentication", help="ODBC Authentication keyword value"),
    username: Optional[str] = typer.Option(None, "--username", help="User name or service principal client id"),
    password: Optional[str] = typer.Option(None, "--password", help="Password or client secret"),
    driver: str = typer.Option(DEFAULT_DRIVER, "--driver", help="ODBC driver name"),
    source_type: str = typer.Option("fabric", "--source-type", help="Source type (fabric, sqlserver)"),
    description: Optional[str] = typer.Option(None, "--description", help="Connection description"),
    skip_test: bool = typer.Option(False, "--skip-test", help="Save without testing the connection"),
    config_file: str = typer.Option("config.yml", "--config", "-c", help="Path to configuration file")
):
    """Add or update a stored connection profile."""
    try:
        config = _load_config(config_file)
        service = ConnectionService(config)
        credentials_manager = service.get_credentials_manager()

        credentials = WarehouseCredentials(
            connection_id=connection_id,
            source_type=source_type,
            server=server,
            database_name=database,
            authentication=authentication,
            username=username,
            password=password,
            driver=driver,
            is_active=True,
            description=description
        )

        if not skip_test:
            warehouse = service.warehouse_config_from_credentials(credentials, config.warehouse.login_timeout)
            connector = ConnectorFactory.create_connector(
                SourceConnection(
                    source_type=source_type,
                    connection_string=warehouse.get_connection_string(),
                    credentials={'server': server, 'database': database, 'username': username},
                    login_timeout=warehouse.login_timeout
                ),
                config
            )
            if not connector:
                console.print(f"❌ Unsupported source type: {source_type}", style="red")
                raise typer.Exit(1)

            console.print("🔌 Testing connection...", style="blue")
            if not connector.test_connection():
                console.print("❌ Connection test failed", style="red")
                raise typer.Exit(1)

        if credentials_manager.save_credentials(credentials):
            console.print(f"✅ Credentials saved for connection_id: {connection_id}", style="green")
        else:
            console.print("❌ Failed to save credentials", style="red")
            raise typer.Exit(1)

    except typer.Exit:
        raise
    except FileNotFoundError as e:
        console.print(f"❌ Configuration file not found: {e}", style="red")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"❌ Error: {e}", style="red")
        raise typer.Exit(1)


@app.command()
def credentials_list(
    config_file: str = typer.Option("config.yml", "--config", "-c", help="Path to configuration file")
):
    """List stored connection profiles."""
    try:
        config = _load_config(config_file)
        credentials_manager = ConnectionService(config).get_credentials_manager()
        credentials_list = credentials_manager.list_credentials()

        if not credentials_list:
            console.print("ℹ️  No credentials found", style="yellow")
            return

        table = Table(title="Stored Credentials")
        table.add_column("Connection ID", style="cyan")
        table.add_column("Type", style="magenta")
        table.add_column("Server", style="green")
        table.add_column("Database", style="blue")
        table.add_column("Authentication", style="yellow")
        table.add_column("Username", style="yellow")
        table.add_column("Active", style="red")
        table.add_column("Description", style="white")

        for cred in credentials_list:
            table.add_row(
                cred['connection_id'],
                cred['source_type'] or "",
                cred['server'] or "",
                cred['database_name'] or "",
                cred['authentication'] or "",
                cred['username'] or "",
                "✅" if cred['is_active'] else "❌",
                cred['description'] or ""
            )

        console.print(table)

    except FileNotFoundError as e:
        console.print(f"❌ Configuration file not found: {e}", style="red")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"❌ Error: {e}", style="red")
        raise typer.Exit(1)


@app.command()
def credentials_delete(
    connection_id: str = typer.Option(..., "--connection-id", help="Connection identifier to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    config_file: str = typer.Option("config.yml", "--config", "-c", help="Path to configuration file")
):
    """Delete a stored connection profile."""
    try:
        config = _load_config(config_file)
        credentials_manager = ConnectionService(config).get_credentials_manager()

        if not yes and not typer.confirm(f"Are you sure you want to delete credentials for '{connection_id}'?"):
            console.print("❌ Operation cancelled", style="yellow")
            return

        if credentials_manager.delete_credentials(connection_id):
            console.print(f"✅ Credentials deleted for connection_id: {connection_id}", style="green")
        else:
            console.print(f"❌ No credentials found for connection_id: {connection_id}", style="red")
            raise typer.Exit(1)

    except typer.Exit:
        raise
    except FileNotFoundError as e:
        console.print(f"❌ Configuration file not found: {e}", style="red")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"❌ Error: {e}", style="red")
        raise typer.Exit(1)


def main():
    """Main entry point for the application."""
    app()


if __name__ == "__main__":
    main()
