"""Init command implementation"""

import typer
from rich.console import Console
from rich.panel import Panel

from shokulab.errors import ContractError

console = Console()


def init_command():
    """Initialize database schema and check the template catalogue"""
    from shokulab.db.supabase import get_database
    from shokulab.services.templates import get_template_registry
    from shokulab.utils.config import get_settings

    console.print(Panel.fit(
        "[bold blue]Initializing Shokulab contracts[/bold blue]",
        border_style="blue"
    ))

    settings = get_settings()
    console.print(f"\n[yellow]1. Initializing {settings.db_mode} database...[/yellow]")
    try:
        get_database().init_db()
        console.print("[green]   [OK] Database initialized[/green]")
    except ContractError as e:
        console.print(f"[red]   [FAIL] Failed to initialize database: {e}[/red]")
        raise typer.Exit(code=1)

    console.print("\n[yellow]2. Checking contract templates...[/yellow]")
    try:
        count = len(get_template_registry().list_templates())
        console.print(f"[green]   [OK] {count} templates loaded[/green]")
    except ContractError as e:
        console.print(f"[red]   [FAIL] Template catalogue is invalid: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(Panel.fit(
        "[bold green][OK] Initialization complete![/bold green]\n\n"
        "Next: [cyan]python -m shokulab templates[/cyan]",
        border_style="green"
    ))
