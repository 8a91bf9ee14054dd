import os
import platform

from typing import List, Optional, Tuple

from rich.console import Console
from rich.table import Table


def collect_system_info() -> List[Tuple[str, str]]:
    return [
        ("OS", f"{platform.system()} {platform.release()}"),
        ("Platform", platform.platform()),
        ("Architecture", platform.machine() or "unknown"),
        ("Processor", platform.processor() or "unknown"),
        ("CPU(s)", str(os.cpu_count() or "unknown")),
        ("Python", platform.python_version()),
    ]


def system_info(console: Optional[Console] = None):
    table = Table(title="System Information", show_header=False, title_style="bold green")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    for name, value in collect_system_info():
        table.add_row(name, value)

    (console or Console()).print(table)
