"""CLI entry point for path-proxy."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, load_config
from ui.dashboard import Dashboard
from ui.log_utils import CLI_LOG_FILE, clear_logs, shutdown_log_executor, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            console.print(f"[bold]Log:[/bold] {CLI_LOG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        console.print(f"[red][ERROR][/red] Unknown argument: {arg}")
        _print_help()
        sys.exit(2)

    config = load_config()

    landing_page = config.rewrite.landing_page
    if landing_page and not landing_page.is_file():
        console.print(f"[red][ERROR][/red] Landing page not found: {landing_page}")
        console.print(f"[dim]Edit {CONFIG_FILE} and fix rewrite.landing_page[/dim]")
        sys.exit(1)

    # Clear previous logs and start dashboard
    clear_logs()
    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    # Run with dashboard
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
    write_cli_log("STARTUP", "Proxy started", host=config.proxy.host, port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        shutdown_log_executor()
        dashboard.stop()


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Path Proxy[/bold cyan]

Fetches the URL embedded in the request path and rewrites links so
browsing continues through the proxy.

[bold]Usage:[/bold]
    path-proxy              Start with live dashboard
    path-proxy --config     Show config and log locations
    path-proxy --help       Show this help

[bold]Browsing:[/bold]
    http://127.0.0.1:8080/https://example.com/
    http://127.0.0.1:8080/anything-else      searches the web
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
