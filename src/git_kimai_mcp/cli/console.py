"""Startup messages rendered with rich on stderr."""

from typing import List

from rich.console import Console
from rich.panel import Panel
from rich.text import Text


class StartupConsole:
    """Minimal startup display; writes to stderr so stdio stays clean."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def show_banner(self, name: str, version: str) -> None:
        """Show server banner."""
        banner = Text(name, style="bold blue")
        banner.append(f" {version} • git log ↔ Kimai timesheets", style="dim")
        self.console.print(Panel(banner, border_style="blue"))

    def show_config_warnings(self, errors: List[str]) -> bool:
        """Show configuration problems; returns True when there are none."""
        if not errors:
            self.console.print("✅ [green]Configuration validated[/green]")
            return True

        self.console.print("⚠️  [yellow bold]Configuration incomplete[/yellow bold]")
        for error in errors:
            self.console.print(f"   • {error}", style="yellow")
        return False
