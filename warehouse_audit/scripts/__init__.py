"""Standalone T-SQL versions of the reports, for running in a Fabric SQL editor."""

from importlib import resources
from typing import List, Tuple

# script name -> (folder, file)
SCRIPTS = {
    'table-statistics': ('Monitoring', 'TableStatisticsAnalysis.sql'),
    'database-permissions': ('Security', 'DatabasePermissionAnalysis.sql'),
}


def list_scripts() -> List[Tuple[str, str, str]]:
    """Bundled scripts as ``(name, folder, file)`` tuples, ordered by folder."""
    return sorted(
        ((name, folder, filename) for name, (folder, filename) in SCRIPTS.items()),
        key=lambda item: (item[1], item[0])
    )


def load_script(name: str) -> str:
    """Return the text of a bundled script.

    Raises:
        KeyError: If no script has that name
    """
    if name not in SCRIPTS:
        raise KeyError(f"Unknown script '{name}'. Available: {', '.join(sorted(SCRIPTS))}")
    folder, filename = SCRIPTS[name]
    return resources.files(__name__).joinpath('sql').joinpath(folder).joinpath(filename).read_text(encoding='utf-8')
