"""
Main entry point for the Tunnel Supervisor.

This module provides the command-line interface: resolving the configuration,
installing the private key, spawning the ssh client and supervising it until
it dies or the container is asked to stop.
"""

import asyncio
import logging
from typing import NoReturn, Optional

import typer

from .application.command_builder import build_command, render_command
from .application.health import probe_port
from .application.supervisor import EXIT_FAILURE, EXIT_OK, ProcessSupervisor
from .core.domain.tunnel import TunnelConfig
from .core.exceptions import HealthProbeFailed, SupervisorException
from .infrastructure.config.loader import ConfigLoader
from .infrastructure.config.models import ApplicationConfig
from .infrastructure.config.resolver import ConfigurationResolver
from .infrastructure.logging.setup import setup_logging

# Create CLI application
cli = typer.Typer(
    name="tunnel-supervisor",
    help="Supervise a single SSH port-forwarding tunnel and report its health",
    add_completion=False
)

logger = logging.getLogger(__name__)


def _fail(message: str) -> NoReturn:
    typer.echo(f"ERROR: {message}", err=True)
    raise typer.Exit(code=EXIT_FAILURE)


def _load(config_file: Optional[str]) -> ApplicationConfig:
    try:
        return ConfigLoader().load_config(config_file)
    except SupervisorException as e:
        _fail(str(e))


def log_tunnel_summary(config: TunnelConfig) -> None:
    """Log the resolved forwarding rules and the endpoint identity."""
    logger.info("Starting SSH tunnel...")
    if config.local_forward is not None:
        logger.info(f"Local forwarding: {config.local_forward}")
    if config.remote_forward is not None:
        logger.info(f"Remote forwarding: {config.remote_forward}")
    if config.extra_options:
        logger.info(f"Extra SSH options: {' '.join(config.extra_options)}")
    logger.info(f"SSH Host: {config.host}:{config.port}")
    logger.info(f"SSH User: {config.user}")


async def run_supervisor(config: ApplicationConfig, tunnel: TunnelConfig) -> int:
    """
    Spawn and supervise the tunnel.

    Args:
        config: Application configuration
        tunnel: Resolved tunnel configuration

    Returns:
        Process exit code
    """
    argv = build_command(tunnel, config.supervisor.executable)
    logger.debug(f"SSH command: {render_command(tunnel, config.supervisor.executable)}")

    supervisor = ProcessSupervisor(argv, tunnel, config.supervisor)
    supervisor.install_signal_handlers()
    try:
        await supervisor.start()
        logger.info("Tunnel is ready!")
        return await supervisor.run()
    finally:
        supervisor.remove_signal_handlers()
        await supervisor.stop()


@cli.command()
def run(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Enable debug logging"
    )
) -> None:
    """Start the SSH tunnel and supervise it until it exits or is stopped."""

    config = _load(config_file)

    if log_level:
        config.logging.level = log_level.upper()
    if debug or config.debug:
        config.debug = True
        config.logging.level = "DEBUG"

    setup_logging(config.logging)

    try:
        resolver = ConfigurationResolver(config.tunnel, config.credentials)
        tunnel = resolver.resolve()
        resolver.install_credentials()
    except SupervisorException as e:
        logger.error(str(e))
        _fail(str(e))

    log_tunnel_summary(tunnel)

    try:
        exit_code = asyncio.run(run_supervisor(config, tunnel))
    except SupervisorException as e:
        logger.error(str(e))
        _fail(str(e))

    raise typer.Exit(code=exit_code)


@cli.command()
def render(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    )
) -> None:
    """Print the ssh command line the supervisor would run."""

    config = _load(config_file)

    try:
        resolver = ConfigurationResolver(config.tunnel, config.credentials)
        tunnel = resolver.resolve(check_credentials=False)
    except SupervisorException as e:
        _fail(str(e))

    typer.echo(render_command(tunnel, config.supervisor.executable))


@cli.command()
def probe(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Connect timeout in seconds"
    )
) -> None:
    """Probe the local forward once (suitable for a container HEALTHCHECK)."""

    config = _load(config_file)

    try:
        tunnel = ConfigurationResolver(config.tunnel, config.credentials).resolve(
            check_credentials=False)
    except SupervisorException as e:
        _fail(str(e))

    if tunnel.local_forward is None:
        typer.echo("No local forwarding configured, nothing to probe")
        raise typer.Exit(code=EXIT_OK)

    port = tunnel.local_forward.port
    try:
        asyncio.run(probe_port(
            port,
            config.supervisor.probe_host,
            timeout if timeout is not None else config.supervisor.probe_timeout
        ))
    except HealthProbeFailed as e:
        _fail(f"Health check failed - {e}")

    typer.echo(f"Tunnel port {port} is accepting connections")


@cli.command()
def init_config(
    output: str = typer.Option(
        "tunnel.yaml", "--output", "-o", help="Output configuration file"
    ),
    format: str = typer.Option(
        "yaml", "--format", "-f", help="Configuration format (yaml/json)"
    )
) -> None:
    """Generate a default configuration file."""

    config = ApplicationConfig()
    config_loader = ConfigLoader()

    try:
        config_loader.save_config(config, output, format)
    except SupervisorException as e:
        _fail(f"Error saving configuration: {e}")

    typer.echo(f"Default configuration saved to {output}")


@cli.command()
def validate_config(
    config_file: str = typer.Argument(...,
                                      help="Configuration file to validate"),
    check_credentials: bool = typer.Option(
        False, "--check-credentials", help="Also require the private key to be mounted"
    )
) -> None:
    """Validate a configuration file."""

    try:
        config = ConfigLoader().load_config(config_file)
        tunnel = ConfigurationResolver(config.tunnel, config.credentials).resolve(
            check_credentials=check_credentials)
    except SupervisorException as e:
        _fail(f"Configuration validation failed: {e}")

    typer.echo(f"Configuration file {config_file} is valid")
    typer.echo(f"Endpoint: {tunnel.endpoint}")
    if tunnel.local_forward is not None:
        typer.echo(f"Local forwarding: {tunnel.local_forward}")
    if tunnel.remote_forward is not None:
        typer.echo(f"Remote forwarding: {tunnel.remote_forward}")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
