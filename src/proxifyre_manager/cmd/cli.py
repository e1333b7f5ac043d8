"""Command-line interface for the ProxiFyre configuration manager.

This module provides the main command-line interface, handling:
- Showing the current service configuration
- Adding, editing and removing proxy rules
- Editing the global exclude list and the log level
- Installing, uninstalling, starting, stopping and restarting the service
- Error reporting

The CLI is built using Typer and only translates user input into calls on
the core (``ConfigStore``, the rule editor and ``ServiceController``). It
owns no validation of its own; every error the core raises is printed and
turned into exit status 1.

Example:
    # Route firefox through a local SOCKS5 proxy, then restart the service:
    $ proxifyre-manager add --app firefox.exe --endpoint 127.0.0.1:1080 --restart
"""

import contextlib
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import typer
from loguru import logger
from rich.markup import escape

from proxifyre_manager import __version__
from proxifyre_manager.core.config_store import ConfigStore
from proxifyre_manager.core.exceptions import ManagerError, RuleIndexError, ServiceStageError
from proxifyre_manager.core.models import AppConfig, LogLevel
from proxifyre_manager.core.rules import EditorSession, RuleDraft, remove_rule, set_excludes
from proxifyre_manager.core.service import ServiceController
from proxifyre_manager.core.settings import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_STAGE_TIMEOUT,
    MIN_STAGE_TIMEOUT,
    ManagerSettings,
)
from proxifyre_manager.core.utils.log_config import LOG_FILE, configure_logging
from proxifyre_manager.core.utils.prompt import ConfigUI, console

app = typer.Typer(help="Configuration and service manager for ProxiFyre", no_args_is_help=True)
service_app = typer.Typer(help="Control the ProxiFyre service", no_args_is_help=True)
app.add_typer(service_app, name="service")

# operation -> (confirm title, confirm question, success message)
SERVICE_PROMPTS = {
    "install": (
        "Install as Service",
        "This will install ProxiFyre as a service. Continue?",
        "Service installed successfully!",
    ),
    "uninstall": (
        "Uninstall as Service",
        "This will uninstall ProxiFyre as a service. Continue?",
        "Service uninstalled successfully!",
    ),
    "start": ("Start Service", "Start the ProxiFyre service?", "Service started successfully!"),
    "stop": ("Stop Service", "Stop the ProxiFyre service?", "Service stopped successfully!"),
    "restart": (
        "Restart Service",
        "Restart the ProxiFyre service now?",
        "Service restarted successfully!",
    ),
}


@dataclass
class CliState:
    """Objects shared by all commands of one invocation."""

    settings: ManagerSettings
    store: ConfigStore
    controller: ServiceController
    ui: ConfigUI


def check_admin() -> bool:
    """Check if the process has administrator (or root) privileges."""
    if os.name == "nt":
        try:
            import ctypes

            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except Exception:
            return False
    return os.geteuid() == 0


@contextlib.contextmanager
def reporting_errors(action: str) -> Iterator[None]:
    """Print core errors in red and exit with status 1."""
    try:
        yield
    except ManagerError as e:
        logger.debug(f"{action}: {e!r}")
        console.print(f"[red]{action}: {escape(str(e))}")
        if isinstance(e, ServiceStageError) and e.completed:
            console.print(
                f"[yellow]Stages already completed and not rolled back: {', '.join(e.completed)}"
            )
        raise typer.Exit(code=1) from e


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[cyan]ProxiFyre Manager v{__version__}[/cyan]")
        raise typer.Exit


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILE), "--config", "-c", envvar="PROXIFYRE_CONFIG", help="Configuration file"
    ),
    service_dir: Path | None = typer.Option(
        None,
        "--service-dir",
        envvar="PROXIFYRE_DIR",
        help="Directory containing the ProxiFyre executable (default: beside this program)",
    ),
    timeout: float = typer.Option(
        DEFAULT_STAGE_TIMEOUT,
        "--timeout",
        envvar="PROXIFYRE_TIMEOUT",
        min=MIN_STAGE_TIMEOUT,
        help="Seconds to wait for each service command",
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to every confirmation"),
    debug: bool = typer.Option(default=False, help="Enable debug logging"),
    version: bool | None = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """Manage the ProxiFyre SOCKS5 redirector."""
    if debug:
        configure_logging("DEBUG")
        logger.debug(f"Debug logging enabled, writing to {LOG_FILE}")

    settings = ManagerSettings(config_path=config, service_dir=service_dir, stage_timeout=timeout)
    ctx.obj = CliState(
        settings=settings,
        store=ConfigStore.from_settings(settings),
        controller=ServiceController(settings),
        ui=ConfigUI(str(config), assume_yes=yes),
    )


def _run_service(state: CliState, operation: str) -> None:
    _, _, success = SERVICE_PROMPTS[operation]
    if operation in ("install", "uninstall") and not check_admin():
        logger.warning("Not running with administrator privileges")
        console.print("[yellow]Warning: installing or removing a service usually requires administrator rights.")

    with reporting_errors(f"Failed to {operation} service"), state.ui.create_status(f"Running {operation}..."):
        getattr(state.controller, operation)()
    console.print(f"[green]{success}")


def _service_command(ctx: typer.Context, operation: str) -> None:
    state: CliState = ctx.obj
    title, question, _ = SERVICE_PROMPTS[operation]
    if not state.ui.confirm(title, question):
        console.print("[yellow]Cancelled")
        return
    _run_service(state, operation)


def _save(state: CliState, config: AppConfig, restart: bool) -> None:
    """Save the configuration and optionally restart the service."""
    with reporting_errors("Failed to save configuration"):
        state.store.save(config)
    console.print("[green]Configuration saved successfully!")

    if restart and state.ui.confirm("Restart Service", "Configuration saved. Restart ProxiFyre service now?"):
        _run_service(state, "restart")


@app.command()
def show(ctx: typer.Context):
    """Show the current configuration."""
    state: CliState = ctx.obj
    state.ui.show(state.store.load())


@app.command(name="log-level")
def log_level(
    ctx: typer.Context,
    level: LogLevel = typer.Argument(..., help="Service log level", case_sensitive=False),
    restart: bool = typer.Option(default=False, help="Restart the service after saving"),
):
    """Set the service log level."""
    state: CliState = ctx.obj
    config = state.store.load()
    config.log_level = level
    _save(state, config, restart)


@app.command()
def add(
    ctx: typer.Context,
    apps: list[str] | None = typer.Option(None, "--app", "-a", help="Application name (repeatable)"),
    endpoint: str = typer.Option("", "--endpoint", "-e", help="SOCKS5 endpoint, e.g. proxy.example.com:1080"),
    username: str = typer.Option("", "--username", "-u", help="Optional username"),
    password: str = typer.Option("", "--password", "-p", help="Optional password"),
    tcp: bool = typer.Option(True, "--tcp/--no-tcp", help="Redirect TCP"),
    udp: bool = typer.Option(False, "--udp/--no-udp", help="Redirect UDP"),
    restart: bool = typer.Option(default=False, help="Restart the service after saving"),
):
    """Add a proxy rule."""
    state: CliState = ctx.obj
    session = EditorSession(state.store.load())
    index = session.add()
    session.draft = RuleDraft(
        app_names_text="\n".join(apps or []),
        endpoint=endpoint,
        username=username,
        password=password,
        tcp=tcp,
        udp=udp,
    )
    config = session.finalize()
    console.print(f"[cyan]Added proxy rule {index}")
    _save(state, config, restart)


@app.command()
def edit(
    ctx: typer.Context,
    index: int = typer.Argument(..., help="Rule number as shown by 'show'"),
    apps: list[str] | None = typer.Option(None, "--app", "-a", help="Replace application names (repeatable)"),
    apps_editor: bool = typer.Option(default=False, help="Edit application names interactively"),
    endpoint: str | None = typer.Option(None, "--endpoint", "-e", help="SOCKS5 endpoint"),
    username: str | None = typer.Option(None, "--username", "-u", help="Username (empty to clear)"),
    password: str | None = typer.Option(None, "--password", "-p", help="Password (empty to clear)"),
    tcp: bool | None = typer.Option(None, "--tcp/--no-tcp", help="Redirect TCP"),
    udp: bool | None = typer.Option(None, "--udp/--no-udp", help="Redirect UDP"),
    restart: bool = typer.Option(default=False, help="Restart the service after saving"),
):
    """Edit a proxy rule; options not given keep their current value."""
    state: CliState = ctx.obj
    session = EditorSession(state.store.load())
    with reporting_errors("Failed to edit proxy rule"):
        session.select(index)
        if session.selected is None:
            raise RuleIndexError(index, len(session.config.proxies))

    draft = session.draft
    if apps_editor:
        draft.app_names_text = state.ui.edit_lines("Application Names", draft.app_names_text.splitlines())
    elif apps is not None:
        draft.app_names_text = "\n".join(apps)
    if endpoint is not None:
        draft.endpoint = endpoint
    if username is not None:
        draft.username = username
    if password is not None:
        draft.password = password
    if tcp is not None:
        draft.tcp = tcp
    if udp is not None:
        draft.udp = udp

    _save(state, session.finalize(), restart)


@app.command()
def remove(
    ctx: typer.Context,
    index: int = typer.Argument(..., help="Rule number as shown by 'show'"),
    restart: bool = typer.Option(default=False, help="Restart the service after saving"),
):
    """Remove a proxy rule."""
    state: CliState = ctx.obj
    config = state.store.load()
    with reporting_errors("Please select a proxy to remove"):
        remove_rule(config, index)

    # Removal is in memory only until saved, so cancelling discards it
    if not state.ui.confirm("Confirm Delete", "Are you sure you want to delete this proxy?"):
        console.print("[yellow]Cancelled")
        return
    _save(state, config, restart)


@app.command()
def excludes(
    ctx: typer.Context,
    apps: list[str] | None = typer.Option(
        None, "--app", "-a", help="Excluded application (repeatable); omit to edit interactively"
    ),
    clear: bool = typer.Option(default=False, help="Remove every excluded application"),
    restart: bool = typer.Option(default=False, help="Restart the service after saving"),
):
    """Replace the global list of applications excluded from proxying."""
    state: CliState = ctx.obj
    config = state.store.load()
    if clear:
        text = ""
    elif apps:
        text = "\n".join(apps)
    else:
        text = state.ui.edit_lines("Global Excluded Applications", config.excludes)
    set_excludes(config, text)
    _save(state, config, restart)


@service_app.command()
def install(ctx: typer.Context):
    """Install the service and start it."""
    _service_command(ctx, "install")


@service_app.command()
def uninstall(ctx: typer.Context):
    """Stop the service and uninstall it."""
    _service_command(ctx, "uninstall")


@service_app.command()
def start(ctx: typer.Context):
    """Start the service."""
    _service_command(ctx, "start")


@service_app.command()
def stop(ctx: typer.Context):
    """Stop the service."""
    _service_command(ctx, "stop")


@service_app.command()
def restart(ctx: typer.Context):
    """Stop the service and start it again."""
    _service_command(ctx, "restart")


if __name__ == "__main__":
    app()
