"""
Core interfaces for the tunnel supervisor.

These abstract base classes describe the lifecycle contracts implemented by
the process supervisor and the health monitor.
"""

from .lifecycle import IStartable, IStoppable, IHealthCheckable

__all__ = [
    "IStartable",
    "IStoppable",
    "IHealthCheckable",
]
