"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer

from ipmipower.config import Settings, load_settings
from ipmipower.errors import ConfigError
from ipmipower.main import build_power_service, run, setup_logging
from ipmipower.services.ipmi_controller import PowerState

app = typer.Typer(
    help=(
        "Power on a server through its BMC (IPMI) when a Wake-on-LAN packet arrives. "
        "Flags override environment variables, which override the defaults. "
        "Flags may be given before or after the command."
    )
)

HostOpt = Annotated[str | None, typer.Option("--host", help="BMC IP address (env IPMI_HOST, default 192.168.0.1)")]
UsernameOpt = Annotated[
    str | None, typer.Option("--username", help="BMC username (env IPMI_USERNAME, default admin)")
]
PasswordOpt = Annotated[
    str | None, typer.Option("--password", help="BMC password (env IPMI_PASSWORD, default admin)")
]
PortOpt = Annotated[int | None, typer.Option("--port", help="BMC port (env IPMI_PORT, default 623)")]
MacOpt = Annotated[
    str | None,
    typer.Option(
        "--mac",
        help="Target MAC address to listen for, 00-11-22-33-44-55 or 00:11:22:33:44:55 "
        "(env WOL_MAC, default 00:11:22:33:44:55)",
    ),
]
WolPortOpt = Annotated[
    int | None, typer.Option("--wol-port", help="WoL UDP port to listen on (env WOL_PORT, default 9)")
]
WolBindOpt = Annotated[
    str | None, typer.Option("--wol-bind", help="WoL bind address (env WOL_BIND_ADDRESS, default 0.0.0.0)")
]
WebHostOpt = Annotated[
    str | None, typer.Option("--web-host", help="Web server bind address (env WEB_HOST, default 0.0.0.0)")
]
WebPortOpt = Annotated[int | None, typer.Option("--web-port", help="Web server port (env WEB_PORT, default 80)")]
TimeoutOpt = Annotated[
    float | None,
    typer.Option(
        "--timeout", help="Seconds allowed for one BMC query-then-act (env ACTION_TIMEOUT_SECONDS, default 10)"
    ),
]
LogLevelOpt = Annotated[str | None, typer.Option("--log-level", help="Logging level (env LOG_LEVEL, default INFO)")]


def _overrides(
    host: str | None,
    username: str | None,
    password: str | None,
    port: int | None,
    mac: str | None,
    wol_port: int | None,
    wol_bind: str | None,
    web_host: str | None,
    web_port: int | None,
    timeout: float | None,
    log_level: str | None,
) -> dict[str, object]:
    """Map flags onto Settings fields, leaving out flags that were not given."""
    fields = {
        "ipmi_host": host,
        "ipmi_username": username,
        "ipmi_password": password,
        "ipmi_port": port,
        "wol_mac": mac,
        "wol_port": wol_port,
        "wol_bind_address": wol_bind,
        "web_host": web_host,
        "web_port": web_port,
        "action_timeout_seconds": timeout,
        "log_level": log_level,
    }
    return {name: value for name, value in fields.items() if value is not None}


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    host: HostOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    port: PortOpt = None,
    mac: MacOpt = None,
    wol_port: WolPortOpt = None,
    wol_bind: WolBindOpt = None,
    web_host: WebHostOpt = None,
    web_port: WebPortOpt = None,
    timeout: TimeoutOpt = None,
    log_level: LogLevelOpt = None,
) -> None:
    """Without a command, runs `serve`."""
    ctx.obj = _overrides(
        host, username, password, port, mac, wol_port, wol_bind, web_host, web_port, timeout, log_level
    )
    if ctx.invoked_subcommand is None:
        serve(ctx)


def _load_settings(ctx: typer.Context, overrides: dict[str, object]) -> Settings:
    # Flags after the command win over the same flags before it
    merged = {**(ctx.obj or {}), **overrides}
    try:
        return load_settings(**merged)
    except ConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("serve")
def serve(
    ctx: typer.Context,
    host: HostOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    port: PortOpt = None,
    mac: MacOpt = None,
    wol_port: WolPortOpt = None,
    wol_bind: WolBindOpt = None,
    web_host: WebHostOpt = None,
    web_port: WebPortOpt = None,
    timeout: TimeoutOpt = None,
    log_level: LogLevelOpt = None,
) -> None:
    """Listen for WoL packets and serve the web control page."""
    settings = _load_settings(
        ctx,
        _overrides(host, username, password, port, mac, wol_port, wol_bind, web_host, web_port, timeout, log_level),
    )
    run(settings)


@app.command("power-on")
def power_on(
    ctx: typer.Context,
    host: HostOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    port: PortOpt = None,
    timeout: TimeoutOpt = None,
    log_level: LogLevelOpt = None,
) -> None:
    """Send one power-on to the BMC now (no-op if already on)."""
    settings = _load_settings(
        ctx, _overrides(host, username, password, port, None, None, None, None, None, timeout, log_level)
    )
    setup_logging(settings.log_level)
    power = build_power_service(settings)
    result = asyncio.run(power.trigger_power_on())
    if not result.ok:
        typer.echo(f"Error: {result.outcome.value}: {result.detail}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"{settings.ipmi_host}: {result.outcome.value}")


@app.command("status")
def status(
    ctx: typer.Context,
    host: HostOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    port: PortOpt = None,
    timeout: TimeoutOpt = None,
    log_level: LogLevelOpt = None,
) -> None:
    """Print the current chassis power state."""
    settings = _load_settings(
        ctx, _overrides(host, username, password, port, None, None, None, None, None, timeout, log_level)
    )
    setup_logging(settings.log_level)
    power = build_power_service(settings)
    state = asyncio.run(power.get_power_state())
    typer.echo(f"{settings.ipmi_host}: {state.value.upper()}")
    if state == PowerState.UNKNOWN:
        raise typer.Exit(code=1)


def run_cli() -> None:
    app()


if __name__ == "__main__":
    run_cli()
