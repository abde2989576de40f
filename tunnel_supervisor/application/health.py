"""
Periodic health checking of the forwarded port.

With a local forward the monitor opens a TCP connection to the listening
port; otherwise a running child process is the only health signal. Failed
probes are logged as warnings and never stop the tunnel.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

from ..core.domain.tunnel import TunnelConfig
from ..core.exceptions import HealthProbeFailed
from ..core.interfaces.lifecycle import IHealthCheckable

logger = logging.getLogger(__name__)


async def probe_port(port: int, host: str = "127.0.0.1", timeout: float = 1.0) -> None:
    """
    Open and close a TCP connection to ``host:port``.

    Raises:
        HealthProbeFailed: If the connection is refused or does not complete
            within ``timeout`` seconds
    """
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout
        )
    except (OSError, asyncio.TimeoutError) as e:
        raise HealthProbeFailed(host, port, e)

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass


class HealthMonitor(IHealthCheckable):
    """
    Health probe loop running next to the tunnel process.

    The monitor only reads liveness through ``is_alive``; it has no handle on
    the process itself.
    """

    def __init__(
        self,
        config: TunnelConfig,
        is_alive: Callable[[], bool],
        interval: float = 30.0,
        probe_timeout: float = 1.0,
        probe_host: str = "127.0.0.1"
    ) -> None:
        self._config = config
        self._is_alive = is_alive
        self._interval = interval
        self._probe_timeout = probe_timeout
        self._probe_host = probe_host

        self.consecutive_failures = 0
        self.total_failures = 0
        self.total_checks = 0
        self.last_checked: Optional[float] = None
        self.last_error: Optional[str] = None

    @property
    def local_port(self) -> Optional[int]:
        """Local listening port to probe, if local forwarding is configured."""
        if self._config.local_forward is None:
            return None
        return self._config.local_forward.port

    async def probe(self) -> None:
        """
        Run a single probe.

        Raises:
            HealthProbeFailed: If the tunnel is not healthy
        """
        port = self.local_port
        if port is None:
            if not self._is_alive():
                raise HealthProbeFailed(None, None)
            return

        await probe_port(port, self._probe_host, self._probe_timeout)

    async def check_once(self) -> bool:
        """Probe once, record the outcome and report whether it was healthy."""
        self.total_checks += 1
        self.last_checked = time.time()

        try:
            await self.probe()
        except HealthProbeFailed as e:
            self.consecutive_failures += 1
            self.total_failures += 1
            self.last_error = str(e)
            logger.warning(f"Health check failed - tunnel may be down ({e})")
            return False

        if self.consecutive_failures:
            logger.info(f"Health check recovered after {self.consecutive_failures} failed probes")
        self.consecutive_failures = 0
        self.last_error = None
        return True

    async def run(self) -> None:
        """Probe every ``interval`` seconds for as long as the child is alive."""
        logger.debug(f"Health monitor started (interval={self._interval}s)")
        while self._is_alive():
            await asyncio.sleep(self._interval)
            if not self._is_alive():
                break
            await self.check_once()
        logger.debug("Health monitor stopped")

    async def check_health(self) -> Dict[str, Any]:
        return {
            'healthy': self.consecutive_failures == 0,
            'status': 'healthy' if self.consecutive_failures == 0 else 'unhealthy',
            'details': {
                'local_port': self.local_port,
                'total_checks': self.total_checks,
                'total_failures': self.total_failures,
                'consecutive_failures': self.consecutive_failures,
                'last_checked': self.last_checked,
                'last_error': self.last_error,
            }
        }
