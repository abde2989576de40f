"""
Tunnel configuration and runtime state.

``TunnelConfig`` is the read-only result of configuration resolution.
``TunnelProcess`` tracks the spawned ssh client and is mutated only by the
process supervisor.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from ..exceptions import InvalidStateTransition
from .forwarding import ForwardSpec


@dataclass(frozen=True)
class TunnelConfig:
    """Fully resolved tunnel configuration."""
    host: str
    user: str = "root"
    port: int = 22
    local_forward: Optional[ForwardSpec] = None
    remote_forward: Optional[ForwardSpec] = None
    extra_options: Tuple[str, ...] = ()
    identity_file: Optional[str] = None

    @property
    def destination(self) -> str:
        """Login destination passed to the ssh client."""
        return f"{self.user}@{self.host}"

    @property
    def endpoint(self) -> str:
        """Human readable ``user@host:port`` identity of the tunnel endpoint."""
        return f"{self.user}@{self.host}:{self.port}"

    @property
    def has_forwarding(self) -> bool:
        return bool(self.local_forward or self.remote_forward or self.extra_options)


class TunnelState(Enum):
    """Lifecycle states of the tunnel process."""
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    CRASHED = "crashed"

    @property
    def is_terminal(self) -> bool:
        return self in (TunnelState.STOPPED, TunnelState.CRASHED)


_TRANSITIONS: Dict[TunnelState, FrozenSet[TunnelState]] = {
    TunnelState.STARTING: frozenset({TunnelState.RUNNING, TunnelState.STOPPED}),
    TunnelState.RUNNING: frozenset({TunnelState.STOPPING, TunnelState.CRASHED}),
    TunnelState.STOPPING: frozenset({TunnelState.STOPPED}),
    TunnelState.STOPPED: frozenset(),
    TunnelState.CRASHED: frozenset(),
}


@dataclass
class TunnelProcess:
    """Runtime handle of the spawned tunnel client."""
    pid: Optional[int] = None
    started_at: Optional[float] = None
    state: TunnelState = TunnelState.STARTING
    returncode: Optional[int] = None
    history: List[Tuple[TunnelState, TunnelState, float]] = field(default_factory=list)

    def transition(self, new_state: TunnelState) -> None:
        """
        Move to a new lifecycle state.

        Args:
            new_state: Target state

        Raises:
            InvalidStateTransition: If the move is not part of the state graph
        """
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidStateTransition(
                f"Cannot move tunnel process from {self.state.value} to {new_state.value}")

        self.history.append((self.state, new_state, time.time()))
        self.state = new_state

    @property
    def is_alive(self) -> bool:
        """True while the child runs and no shutdown has completed."""
        return self.state in (TunnelState.RUNNING, TunnelState.STOPPING) and self.returncode is None

    @property
    def uptime(self) -> float:
        if self.started_at is None:
            return 0.0
        return time.time() - self.started_at
