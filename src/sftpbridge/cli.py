"""Command-line interface for SFTP Bridge.

Commands:
- serve: Run the bridge web service
- config: Show the effective configuration
"""

from __future__ import annotations

import os

import click

from sftpbridge.core.config import BridgeConfig

DEFAULT_PORT = 3000


@click.group()
@click.version_option(package_name="sftpbridge")
def cli() -> None:
    """SFTP Bridge - browse and transfer files between this machine and SSH hosts."""


@cli.command()
@click.option(
    "--host",
    default="127.0.0.1",
    show_default=True,
    help="Interface to bind.",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help=f"Port to listen on (default: PORT or {DEFAULT_PORT}).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default="info",
    show_default=True,
    help="uvicorn log level.",
)
def serve(host: str, port: int | None, log_level: str) -> None:
    """Run the bridge web service.

    Configuration is read from SFTPBRIDGE_* environment variables.

    Examples:

        # Listen on the default port
        sftpbridge serve

        # Expose on all interfaces, port 8080
        sftpbridge serve --host 0.0.0.0 --port 8080
    """
    import uvicorn

    # Read back by app_factory inside the uvicorn process
    os.environ["SFTPBRIDGE_LOG_LEVEL"] = log_level
    resolved_port = port if port is not None else int(os.environ.get("PORT", str(DEFAULT_PORT)))
    click.echo(f"Server running on port {resolved_port}")
    click.echo(f"Open http://{host}:{resolved_port} in your browser")
    uvicorn.run(
        "sftpbridge.server.app:app_factory",
        factory=True,
        host=host,
        port=resolved_port,
        log_level=log_level,
    )


@cli.command("config")
def show_config() -> None:
    """Show the effective configuration."""
    config = BridgeConfig.from_env()
    click.echo(f"Data dir:        {config.data_dir}")
    click.echo(f"Staging dir:     {config.staging_dir}")
    click.echo(f"Downloads dir:   {config.downloads_dir}")
    click.echo(f"Default path:    {config.default_local_path}")
    click.echo(f"Log file:        {config.log_path}")
    click.echo(f"Log buffer:      {config.log_buffer_size} entries")
    click.echo(f"Chunk size:      {config.chunk_size} bytes")
    click.echo(f"Known hosts:     {config.known_hosts or '(SSH default)'}")
    click.echo(f"Connect timeout: {config.connect_timeout}s")
    click.echo(
        f"Keep-alive:      every {config.keepalive_interval}s, "
        f"{config.keepalive_count_max} missed max"
    )


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
