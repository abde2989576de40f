"""
Application layer: command rendering, process supervision and health checks.
"""

from .command_builder import build_command, render_command
from .health import HealthMonitor, probe_port
from .supervisor import ProcessSupervisor, EXIT_OK, EXIT_FAILURE

__all__ = [
    "build_command",
    "render_command",
    "HealthMonitor",
    "probe_port",
    "ProcessSupervisor",
    "EXIT_OK",
    "EXIT_FAILURE",
]
