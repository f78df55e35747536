"""
dlmomentos-logout: Remove local credentials.
"""

from __future__ import annotations

import rich_click as click
from rich.console import Console

from dlmomentos.config import Config
from dlmomentos.credential_store import clear as clear_credentials
from dlmomentos.exceptions import DlmomentosError

console = Console()


@click.command()
@click.option("--config", type=click.Path(exists=True), help="Path to config file")
def main(config: str | None) -> None:
    """Remove locally stored credentials."""
    try:
        cfg = Config(env_file=config) if config else Config()
        removed = clear_credentials(cfg.credentials_path)
    except DlmomentosError as e:
        console.print(f"[red]Logout failed:[/red] {e.code}: {e.message}")
        raise SystemExit(1)
    except OSError as e:
        console.print(f"[red]Could not remove credentials:[/red] {e}")
        raise SystemExit(1)

    if removed:
        console.print("[green]✓ Signed out. Local credentials removed.[/green]")
    else:
        console.print("Not signed in; nothing to remove.")
