"""
Tests for the tunnel configuration and process state models.
"""

import pytest

from tunnel_supervisor.core.domain.forwarding import ForwardDirection, parse_forward_spec
from tunnel_supervisor.core.domain.tunnel import TunnelConfig, TunnelProcess, TunnelState
from tunnel_supervisor.core.exceptions import InvalidStateTransition


class TestTunnelConfig:
    """Test cases for TunnelConfig."""

    def test_defaults(self) -> None:
        config = TunnelConfig(host="db.example.com")

        assert config.user == "root"
        assert config.port == 22
        assert config.local_forward is None
        assert config.remote_forward is None
        assert config.extra_options == ()
        assert config.has_forwarding is False

    def test_endpoint_and_destination(self) -> None:
        config = TunnelConfig(host="db.example.com", user="deploy", port=2222)

        assert config.destination == "deploy@db.example.com"
        assert config.endpoint == "deploy@db.example.com:2222"

    def test_has_forwarding(self) -> None:
        local = parse_forward_spec("3306:localhost:3306", ForwardDirection.LOCAL)

        assert TunnelConfig(host="h", local_forward=local).has_forwarding
        assert TunnelConfig(host="h", extra_options=("-D", "1080")).has_forwarding

    def test_is_read_only(self) -> None:
        config = TunnelConfig(host="h")
        with pytest.raises(AttributeError):
            config.host = "other"  # type: ignore[misc]


class TestTunnelProcess:
    """Test cases for TunnelProcess lifecycle transitions."""

    def test_initial_state(self) -> None:
        process = TunnelProcess()

        assert process.state is TunnelState.STARTING
        assert process.is_alive is False
        assert process.uptime == 0.0

    def test_graceful_path(self) -> None:
        process = TunnelProcess(pid=123)

        process.transition(TunnelState.RUNNING)
        assert process.is_alive is True
        process.transition(TunnelState.STOPPING)
        process.transition(TunnelState.STOPPED)

        assert process.state.is_terminal
        assert [new for _, new, _ in process.history] == [
            TunnelState.RUNNING, TunnelState.STOPPING, TunnelState.STOPPED
        ]

    def test_crash_path(self) -> None:
        process = TunnelProcess(pid=123)
        process.transition(TunnelState.RUNNING)
        process.transition(TunnelState.CRASHED)

        assert process.state.is_terminal
        assert process.is_alive is False

    @pytest.mark.parametrize("path", [
        [TunnelState.STOPPING],
        [TunnelState.CRASHED],
        [TunnelState.RUNNING, TunnelState.STOPPED],
        [TunnelState.RUNNING, TunnelState.STOPPING, TunnelState.CRASHED],
        [TunnelState.RUNNING, TunnelState.CRASHED, TunnelState.STOPPING],
    ])
    def test_invalid_transitions(self, path: list) -> None:
        process = TunnelProcess()

        with pytest.raises(InvalidStateTransition):
            for state in path:
                process.transition(state)
