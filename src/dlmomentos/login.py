"""
dlmomentos-login: Sign in with email and password and store the session.
"""

from __future__ import annotations

import logging
import time

import rich_click as click
from rich.console import Console

from dlmomentos.config import Config
from dlmomentos.credential_store import Credentials
from dlmomentos.credential_store import save as save_credentials
from dlmomentos.exceptions import DlmomentosError
from dlmomentos.momentos_client import MomentosClient

console = Console()
logger = logging.getLogger(__name__)


@click.command()
@click.argument("email")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    envvar="MOMENTOS_PASSWORD",
    help="Account password (prompted when omitted; also read from MOMENTOS_PASSWORD)",
)
@click.option("--config", type=click.Path(exists=True), help="Path to config file")
@click.option("--debug", "-d", is_flag=True, help="Debug mode")
def main(email: str, password: str, config: str | None, debug: bool) -> None:
    """Sign in to Momentos. The session token is stored for later commands."""
    try:
        cfg = Config(env_file=config) if config else Config()
        result = MomentosClient.login(
            email, password, base_url=cfg.api_base_url, timeout=cfg.request_timeout
        )
        save_credentials(
            cfg.credentials_path,
            Credentials(
                token=result.token,
                user_id=result.user_id,
                email=email,
                privileges=result.privileges,
                issued_at=int(time.time()),
            ),
        )
    except DlmomentosError as e:
        logger.debug("Login failed:", exc_info=True)
        console.print(f"[red]Login failed:[/red] {e.code}: {e.message}")
        if e.details:
            console.print(e.details)
        if debug:
            raise
        raise SystemExit(1)
    except OSError as e:
        console.print(f"[red]Could not save credentials:[/red] {e}")
        raise SystemExit(1)

    console.print(f"[green]✓ Signed in as {email}. Credentials saved.[/green]")
