"""
Lifecycle management interfaces for components that need startup/shutdown behavior.

These interfaces give the process supervisor and the health monitor a
consistent shape for starting, stopping and reporting health.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class IStartable(ABC):
    """Interface for components that can be started."""

    @abstractmethod
    async def start(self) -> None:
        """
        Start the component.

        Raises:
            SupervisorException: If the component fails to start.
        """
        pass


class IStoppable(ABC):
    """Interface for components that can be stopped."""

    @abstractmethod
    async def stop(self) -> None:
        """
        Stop the component gracefully.

        Calling stop on a component that is not running must be a no-op.
        """
        pass


class IHealthCheckable(ABC):
    """Interface for components that can report their health status."""

    @abstractmethod
    async def check_health(self) -> Dict[str, Any]:
        """
        Check the health status of the component.

        Returns:
            Dict containing health information with at least:
            - 'healthy': bool indicating if component is healthy
            - 'status': str describing current status
            - 'details': Dict with additional health details

        Example:
            {
                'healthy': True,
                'status': 'running',
                'details': {
                    'pid': 42,
                    'uptime': 3600,
                    'consecutive_failures': 0
                }
            }
        """
        pass
