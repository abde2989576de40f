"""
Domain models for forwarding rules and the supervised tunnel.
"""

from .forwarding import ForwardDirection, ForwardSpec, parse_forward_spec
from .tunnel import TunnelConfig, TunnelProcess, TunnelState

__all__ = [
    "ForwardDirection",
    "ForwardSpec",
    "parse_forward_spec",
    "TunnelConfig",
    "TunnelProcess",
    "TunnelState",
]
