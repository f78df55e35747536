"""
dlmomentos – unified CLI entrypoint (Click group)

Subcommands:
- login: sign in with email/password and store the session
- logout: remove local credentials
- list: show the signed-in user's groups
- download: download index, transcripts and recordings for groups
"""

import json
import logging
import re
import sys
from pathlib import Path

import rich_click as click
from dlmomentos import __version__
from dlmomentos.config import Config
from dlmomentos.exceptions import AuthenticationError, DlmomentosError, DownloadFailedError
from dlmomentos.logger import setup_logging
from dlmomentos.login import main as login_main
from dlmomentos.logout import main as logout_main
from dlmomentos.momentos_client import MomentosClient
from dlmomentos.orchestrator import GroupDownloader
from dlmomentos.output import OutputFormatter
from dlmomentos.writer import OutputWriter

click.rich_click.TEXT_MARKUP = "rich"
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True

logger = logging.getLogger(__name__)

_GROUP_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,100}$")


def _autoload_dotenv() -> None:
    """Load a local .env file for CLI usage.

    Skipped when DLMOMENTOS_NO_DOTENV is set (e.g., tests). Existing
    environment variables are never overridden.
    """
    import os

    if os.getenv("DLMOMENTOS_NO_DOTENV"):
        return
    from dotenv import find_dotenv, load_dotenv

    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path, override=False)


def validate_group_ids(
    ctx: click.Context, param: click.Parameter, value: tuple[str, ...]
) -> tuple[str, ...]:
    """
    Validate group IDs before they are used as directory names

    Raises:
        click.BadParameter: If an ID is empty, too long, or contains path characters
    """
    cleaned = []
    for raw in value:
        group_id = raw.strip()
        if ".." in group_id or "/" in group_id or "\\" in group_id:
            raise click.BadParameter(
                f"Group ID {raw!r} contains invalid characters (path traversal attempt detected)"
            )
        if not _GROUP_ID_RE.match(group_id):
            raise click.BadParameter(
                f"Invalid group ID format: {raw!r}. "
                "Expected 1-100 letters, digits, '_' or '-'"
            )
        cleaned.append(group_id)
    return tuple(cleaned)


def _log_level(verbose: bool, debug: bool) -> str:
    return "DEBUG" if debug else ("INFO" if verbose else "WARNING")


def _build_client(cfg: Config) -> MomentosClient:
    token = cfg.get_bearer_token()
    if not token:
        raise AuthenticationError(
            "Not signed in", details="Run 'dlmomentos login <email>' or set MOMENTOS_TOKEN"
        )
    return MomentosClient(token, base_url=cfg.api_base_url, timeout=cfg.request_timeout)


def _report_error(formatter: OutputFormatter, json_mode: bool, e: DlmomentosError) -> None:
    if json_mode:
        print(json.dumps({"status": "error", "error": e.to_dict()}, indent=2))
    else:
        formatter.output_error(f"{e.code}: {e.message}")
        if e.details:
            formatter.output_info(e.details)


@click.group(help="dlmomentos – Download Momentos event recordings and transcripts")
@click.version_option(version=__version__)
def cli() -> None:
    """Top-level Click group."""
    _autoload_dotenv()


cli.add_command(login_main, name="login")
cli.add_command(logout_main, name="logout")


@cli.command(name="list", help="List the groups of the signed-in user")
@click.option("--json", "-j", "json_mode", is_flag=True, help="JSON output mode")
@click.option("--tsv", "tsv_mode", is_flag=True, help="Tab-separated output")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--debug", "-d", is_flag=True, help="Debug output")
@click.option("--config", type=click.Path(exists=True), help="Path to config file")
def list_groups(
    json_mode: bool, tsv_mode: bool, verbose: bool, debug: bool, config: str | None
) -> None:
    setup_logging(level=_log_level(verbose, debug), verbose=debug)
    formatter = OutputFormatter("json" if json_mode else ("tsv" if tsv_mode else "human"))

    try:
        cfg = Config(env_file=config) if config else Config()
        client = _build_client(cfg)
        user_id = cfg.get_user_id()
        if not user_id:
            raise AuthenticationError(
                "User ID not found",
                details="Run 'dlmomentos login <email>' or set MOMENTOS_USER_ID",
            )
        groups = client.get_user_groups(user_id)
        formatter.output_groups(groups)
    except DlmomentosError as e:
        logger.debug("DlmomentosError in list command:", exc_info=True)
        _report_error(formatter, json_mode, e)
        if debug:
            raise
        sys.exit(1)


@cli.command(name="download", help="Download index, transcripts and recordings for groups")
@click.argument("group_ids", nargs=-1, required=True, callback=validate_group_ids)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    help="Output directory (default: current directory)",
)
@click.option(
    "--max-workers",
    type=click.IntRange(min=1),
    help="Maximum events downloaded in parallel per group (default: 8)",
)
@click.option("--no-progress", is_flag=True, help="Disable progress bars")
@click.option("--json", "-j", "json_mode", is_flag=True, help="JSON output mode")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--debug", "-d", is_flag=True, help="Debug output")
@click.option("--config", type=click.Path(exists=True), help="Path to config file")
def download(
    group_ids: tuple[str, ...],
    output_dir: Path | None,
    max_workers: int | None,
    no_progress: bool,
    json_mode: bool,
    verbose: bool,
    debug: bool,
    config: str | None,
) -> None:
    """Download every event of the given groups."""
    setup_logging(level=_log_level(verbose, debug), verbose=debug)
    formatter = OutputFormatter("json" if json_mode else "human")

    try:
        cfg = Config(env_file=config) if config else Config()
        if output_dir:
            cfg.output_dir = Path(output_dir).expanduser()
        client = _build_client(cfg)

        downloader = GroupDownloader(
            client,
            OutputWriter(cfg.output_dir),
            max_workers=max_workers or cfg.max_workers,
            show_progress=not (json_mode or no_progress),
            console=formatter.console,
        )
        report = downloader.download_groups(group_ids)
        formatter.output_download_report(report)

        if not report.ok:
            failed = report.failed_groups
            names = ", ".join(g.group_id for g in failed)
            raise DownloadFailedError(
                "Download incomplete",
                details=f"{len(failed)} of {len(report.groups)} groups failed: {names}",
            )
    except DownloadFailedError as e:
        # Per-group detail was already printed with the report
        logger.debug("Download incomplete:", exc_info=True)
        if not json_mode:
            formatter.output_error(f"{e.code}: {e.message}")
            formatter.output_info(e.details)
        if debug:
            raise
        sys.exit(1)
    except DlmomentosError as e:
        logger.debug("DlmomentosError in download command:", exc_info=True)
        _report_error(formatter, json_mode, e)
        if debug:
            raise
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
