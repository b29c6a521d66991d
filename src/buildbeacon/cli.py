"""buildbeacon Command Line Interface.

Entry point for the buildbeacon CLI tool.
"""

from __future__ import annotations

import time
from pathlib import Path

import typer
from pydantic import ValidationError

from buildbeacon import __version__
from buildbeacon.cli_helpers import EnvironmentRun, describe_settings, resolve_settings_path
from buildbeacon.contracts.enums import LifecycleNotification
from buildbeacon.core.config import BuildBeaconSettings, load_settings

__all__ = [
    "app",
]

app = typer.Typer(
    name="buildbeacon",
    help="buildbeacon: Report build lifecycle telemetry to Datadog.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"buildbeacon version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """buildbeacon: Report build lifecycle telemetry to Datadog."""
    from buildbeacon.core.logging import configure_logging

    log_level = "DEBUG" if verbose else "INFO"
    configure_logging(json_output=json_logs, level=log_level)

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _format_config_error(
    title: str,
    message: str,
    hint: str | None = None,
    details: list[str] | None = None,
) -> None:
    """Display a formatted configuration error with optional hint and details."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)

    content = Text()
    content.append(message, style="white")

    if details:
        content.append("\n\n")
        for detail in details:
            content.append(f"  • {detail}\n", style="dim")

    if hint:
        content.append("\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")

    panel = Panel(
        content,
        title=f"[red bold]{title}[/]",
        border_style="red",
        padding=(0, 1),
    )
    console.print(panel)


def _load_settings_or_exit(settings: str | None) -> BuildBeaconSettings:
    """Load settings, turning configuration errors into exit code 1."""
    settings_path = resolve_settings_path(settings)
    source = settings_path.name if settings_path is not None else "environment"

    try:
        return load_settings(settings_path)
    except FileNotFoundError:
        _format_config_error(
            title="File Not Found",
            message=f"Settings file does not exist: {settings}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except ValidationError as e:
        details = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            details.append(f"{loc}: {error['msg']}" if loc else error["msg"])
        _format_config_error(
            title="Configuration Validation Failed",
            message=f"Invalid settings in {source}",
            details=details,
            hint="Set BUILDBEACON_API_KEY (or api_key in the settings file) and check field types.",
        )
        raise typer.Exit(1) from None


@app.command()
def notify(
    notification: LifecycleNotification = typer.Argument(
        ...,
        help="Which lifecycle notification to report.",
        case_sensitive=False,
    ),
    job: str = typer.Option(
        ...,
        "--job",
        "-j",
        envvar="JOB_NAME",
        help="Job display name.",
    ),
    number: int = typer.Option(
        ...,
        "--number",
        "-n",
        envvar="BUILD_NUMBER",
        min=0,
        help="Run sequence number.",
    ),
    start_ms: int | None = typer.Option(
        None,
        "--start-ms",
        help="Run start time in unix milliseconds (default: now).",
    ),
    duration_ms: int = typer.Option(
        0,
        "--duration-ms",
        min=0,
        help="Run duration in milliseconds (completed only).",
    ),
    result: str | None = typer.Option(
        None,
        "--result",
        "-r",
        help="Terminal result, reported verbatim; only SUCCESS counts as a pass (completed only).",
    ),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file (default: environment only).",
    ),
) -> None:
    """Report a build start or completion to Datadog.

    Delivery is best-effort: failures are logged and the command still
    exits 0 so a monitoring outage never fails a build.

    Examples:

        buildbeacon notify started --job my-job --number 42

        buildbeacon notify completed --start-ms 1700000000000 --duration-ms 45000 --result SUCCESS
    """
    from buildbeacon.telemetry.listener import BuildListener

    config = _load_settings_or_exit(settings)

    run = EnvironmentRun.from_process(
        job_name=job,
        number=number,
        start_time_ms=start_ms if start_ms is not None else int(time.time() * 1000),
        duration_ms=duration_ms,
        result=result,
    )

    summary = BuildListener(config).handle(notification, run)
    if summary is None:
        typer.echo(f"Job '{job}' is blacklisted; nothing reported.")
        return

    for endpoint, delivered in summary.deliveries.items():
        status = "sent" if delivered else "FAILED"
        typer.echo(f"{endpoint.value}: {status}")


@app.command("test-connection")
def test_connection(
    api_key: str | None = typer.Option(
        None,
        "--api-key",
        help="API key to check (default: the configured key).",
    ),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file (default: environment only).",
    ),
    show_settings: bool = typer.Option(
        False,
        "--show-settings",
        help="Print the effective (secret-free) settings before testing.",
    ),
) -> None:
    """Check an API key against the Datadog validate endpoint."""
    from buildbeacon.telemetry.client import DatadogClient

    config = _load_settings_or_exit(settings)

    if show_settings:
        for line in describe_settings(config):
            typer.echo(line)

    validation = DatadogClient(config).validate_api_key(api_key)
    if validation.valid:
        typer.secho(validation.message, fg=typer.colors.GREEN)
        return

    typer.secho(validation.message, fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
