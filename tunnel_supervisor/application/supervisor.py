"""
Process supervisor for the ssh tunnel client.

The supervisor spawns the client, then waits on three things at once: the
child exiting, a termination signal and the health monitor loop. Whichever of
the first two happens first decides the exit code.
"""

import asyncio
import logging
import signal
import time
from typing import Any, Dict, List, Optional, Sequence

from ..core.domain.tunnel import TunnelConfig, TunnelProcess, TunnelState
from ..core.exceptions import ChildCrashed, InvalidStateTransition, SpawnFailed
from ..core.interfaces.lifecycle import IHealthCheckable, IStartable, IStoppable
from ..infrastructure.config.models import SupervisorConfig
from .health import HealthMonitor

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class ProcessSupervisor(IStartable, IStoppable, IHealthCheckable):
    """
    Owns the lifecycle of the tunnel client process.

    Only the supervisor mutates ``self.process``. The health monitor gets a
    read-only liveness callback.
    """

    def __init__(
        self,
        argv: Sequence[str],
        config: TunnelConfig,
        settings: Optional[SupervisorConfig] = None,
        monitor: Optional[HealthMonitor] = None
    ) -> None:
        """
        Initialize the supervisor.

        Args:
            argv: Full client command line, argv[0] is the binary
            config: Resolved tunnel configuration
            settings: Supervision settings (intervals, grace period)
            monitor: Health monitor to run; one is built from settings if omitted
        """
        self._argv: List[str] = list(argv)
        self._config = config
        self._settings = settings or SupervisorConfig()
        self._monitor = monitor or HealthMonitor(
            config,
            self.is_alive,
            interval=self._settings.health_interval,
            probe_timeout=self._settings.probe_timeout,
            probe_host=self._settings.probe_host,
        )

        self.process = TunnelProcess()
        self.failure: Optional[ChildCrashed] = None
        self._child: Optional[asyncio.subprocess.Process] = None
        self._shutdown = asyncio.Event()
        self._received_signal: Optional[int] = None
        self._signal_loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def monitor(self) -> HealthMonitor:
        return self._monitor

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown.is_set()

    def is_alive(self) -> bool:
        """Liveness as seen by the health monitor."""
        return (
            self._child is not None
            and self._child.returncode is None
            and self.process.state is TunnelState.RUNNING
        )

    async def start(self) -> None:
        """
        Spawn the tunnel client.

        Raises:
            SpawnFailed: If the binary cannot be executed
        """
        if self.process.state is not TunnelState.STARTING:
            return

        executable = self._argv[0]
        try:
            self._child = await asyncio.create_subprocess_exec(
                *self._argv,
                stdin=asyncio.subprocess.DEVNULL
            )
        except OSError as e:
            self.process.transition(TunnelState.STOPPED)
            raise SpawnFailed(executable, e)

        self.process.pid = self._child.pid
        self.process.started_at = time.time()
        self.process.transition(TunnelState.RUNNING)

        logger.info(f"SSH tunnel established (PID: {self._child.pid})")

    def request_shutdown(self, signum: Optional[int] = None) -> None:
        """Ask the supervisor to stop the tunnel and exit cleanly."""
        if signum is not None:
            self._received_signal = signum
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
        self._shutdown.set()

    def install_signal_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Route SIGTERM and SIGINT to ``request_shutdown``."""
        loop = loop or asyncio.get_running_loop()
        for signum in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(signum, self.request_shutdown, signum)
        self._signal_loop = loop

    def remove_signal_handlers(self) -> None:
        if self._signal_loop is None:
            return
        for signum in SHUTDOWN_SIGNALS:
            self._signal_loop.remove_signal_handler(signum)
        self._signal_loop = None

    async def run(self) -> int:
        """
        Supervise the tunnel until it exits or a shutdown is requested.

        Returns:
            0 after a requested shutdown, 1 if the child exited on its own
        """
        await self.start()
        if self._child is None:
            raise InvalidStateTransition(
                f"Cannot supervise a tunnel in state {self.process.state.value}")

        monitor_task = asyncio.create_task(self._monitor.run(), name="health-monitor")
        monitor_task.add_done_callback(self._on_monitor_done)
        exit_task = asyncio.create_task(self._child.wait(), name="child-exit")
        shutdown_task = asyncio.create_task(self._shutdown.wait(), name="shutdown-signal")

        try:
            done, _ = await asyncio.wait(
                {exit_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            monitor_task.cancel()
            await asyncio.gather(monitor_task, return_exceptions=True)

        if shutdown_task in done:
            exit_task.cancel()
            await asyncio.gather(exit_task, return_exceptions=True)
            await self.stop()
            return EXIT_OK

        shutdown_task.cancel()
        await asyncio.gather(shutdown_task, return_exceptions=True)
        self._mark_crashed(exit_task.result())
        return EXIT_FAILURE

    async def stop(self) -> None:
        """
        Terminate the child and wait for it, escalating to SIGKILL.

        The child gets ``grace_period`` seconds to exit after SIGTERM.
        """
        if self.process.state is not TunnelState.RUNNING or self._child is None:
            return

        self.process.transition(TunnelState.STOPPING)
        logger.info("Shutting down SSH tunnel...")

        child = self._child
        if child.returncode is None:
            try:
                child.terminate()
            except ProcessLookupError:
                pass

            try:
                await asyncio.wait_for(child.wait(), timeout=self._settings.grace_period)
            except asyncio.TimeoutError:
                logger.warning(
                    f"SSH process {child.pid} did not exit within "
                    f"{self._settings.grace_period}s, killing it")
                try:
                    child.kill()
                except ProcessLookupError:
                    pass
                await child.wait()

        self.process.returncode = child.returncode
        self.process.transition(TunnelState.STOPPED)
        logger.info("SSH tunnel stopped")

    def ensure_running(self) -> None:
        """
        Raises:
            ChildCrashed: If the tunnel process has exited on its own
        """
        if self.failure is not None:
            raise self.failure

    async def check_health(self) -> Dict[str, Any]:
        monitor_health = await self._monitor.check_health()
        alive = self.is_alive()
        return {
            'healthy': alive and monitor_health['healthy'],
            'status': self.process.state.value,
            'details': {
                'pid': self.process.pid,
                'uptime': self.process.uptime if alive else 0.0,
                'returncode': self.process.returncode,
                'endpoint': self._config.endpoint,
                'monitor': monitor_health['details'],
            }
        }

    def _mark_crashed(self, returncode: int) -> None:
        self.process.returncode = returncode
        self.process.transition(TunnelState.CRASHED)
        self.failure = ChildCrashed(self.process.pid, returncode)
        logger.error(str(self.failure))

    def _on_monitor_done(self, task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Health monitor stopped with an error: {error!r}")
