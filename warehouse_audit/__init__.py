"""Table statistics and permission audits for Microsoft Fabric Warehouse."""

__version__ = "1.0.0"
