"""
Tunnel Supervisor - keeps a single SSH port-forwarding tunnel alive and reports its health.

This package resolves a declarative forwarding configuration into an ``ssh``
invocation, owns the lifecycle of that child process and runs a periodic
health probe against the forwarded port.
"""

__version__ = "0.1.0"

# Public API exports
from .core.exceptions import (
    SupervisorException,
    ConfigurationException,
    MissingRequiredField,
    NoForwardingConfigured,
    CredentialNotFound,
    CredentialInstallFailed,
    InvalidForwardSpec,
    SpawnFailed,
    ChildCrashed,
    HealthProbeFailed,
)
from .core.domain.forwarding import ForwardDirection, ForwardSpec, parse_forward_spec
from .core.domain.tunnel import TunnelConfig, TunnelProcess, TunnelState
from .application.command_builder import build_command
from .application.supervisor import ProcessSupervisor
from .application.health import HealthMonitor

__all__ = [
    "SupervisorException",
    "ConfigurationException",
    "MissingRequiredField",
    "NoForwardingConfigured",
    "CredentialNotFound",
    "CredentialInstallFailed",
    "InvalidForwardSpec",
    "SpawnFailed",
    "ChildCrashed",
    "HealthProbeFailed",
    "ForwardDirection",
    "ForwardSpec",
    "parse_forward_spec",
    "TunnelConfig",
    "TunnelProcess",
    "TunnelState",
    "build_command",
    "ProcessSupervisor",
    "HealthMonitor",
]
