"""CLI entry point for cors-relay."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, Config, load_config
from core.exceptions import ConfigurationError
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, write_cli_log

console = Console()

# flag -> (section, field, type)
OVERRIDES = {
    "--host": ("proxy", "host", str),
    "--port": ("proxy", "port", int),
    "--max-redirects": ("relay", "max_redirects", int),
    "--timeout": ("relay", "timeout", float),
}


def main():
    """Main CLI entry point."""
    args = sys.argv[1:]

    if args:
        arg = args[0]

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

    try:
        config = apply_overrides(load_config(), args)
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(2)

    # Clear previous logs and start dashboard
    clear_logs()
    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log(
        "STARTUP",
        "Relay started",
        port=config.proxy.port,
        max_redirects=config.relay.max_redirects,
    )
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Relay stopped", duration=str(duration))
        dashboard.stop()


def apply_overrides(config: Config, args: list[str]) -> Config:
    """Apply ``--flag value`` startup overrides on top of the loaded config."""
    if len(args) % 2:
        raise ConfigurationError(f"Missing value for {args[-1]}")

    data = config.model_dump()
    for flag, raw in zip(args[::2], args[1::2]):
        if flag not in OVERRIDES:
            raise ConfigurationError(f"Unknown option {flag}")
        section, field, cast = OVERRIDES[flag]
        try:
            data[section][field] = cast(raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {flag}: {raw}") from e

    try:
        return Config.model_validate(data)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def _print_help():
    """Print help message."""
    help_text = f"""
[bold cyan]CORS Relay[/bold cyan]

Forwards /<target-url> to the target and returns the response with CORS enabled.

[bold]Usage:[/bold]
    cors-relay                          Start with live dashboard
    cors-relay --port 9000              Override the listen port
    cors-relay --host 0.0.0.0           Override the listen address
    cors-relay --max-redirects 10       Override the redirect budget
    cors-relay --timeout 60             Override the per-hop timeout (seconds)
    cors-relay --config                 Show config location
    cors-relay --help                   Show this help

[bold]Examples:[/bold]
    curl http://localhost:8080/example.com/file.ext
    curl http://localhost:8080/https://example.com/api?x=1

Config file: {CONFIG_FILE}
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
