"""
Rendering of a resolved tunnel configuration into an ssh argument list.

The token order is fixed. Caller-supplied options come after the hardening
defaults so that clients which let later flags override earlier ones honor
them, and the destination is always last.
"""

import shlex
from typing import List

from ..core.domain.tunnel import TunnelConfig

# No remote command, no pseudo-terminal
MODE_FLAGS = ("-N", "-T")

HARDENING_OPTIONS = (
    "StrictHostKeyChecking=no",
    "ServerAliveInterval=60",
    "ServerAliveCountMax=3",
    "ExitOnForwardFailure=yes",
)


def build_command(config: TunnelConfig, executable: str = "ssh") -> List[str]:
    """
    Build the ssh argument list for a tunnel.

    Args:
        config: Resolved tunnel configuration
        executable: Client binary placed at argv[0]

    Returns:
        Argument tokens, ready for ``create_subprocess_exec``
    """
    argv = [executable, *MODE_FLAGS]

    for option in HARDENING_OPTIONS:
        argv.extend(["-o", option])

    if config.identity_file:
        argv.extend(["-i", config.identity_file])

    argv.extend(config.extra_options)

    for forward in (config.local_forward, config.remote_forward):
        if forward is not None:
            argv.extend([forward.direction.flag, forward.canonical()])

    argv.extend(["-p", str(config.port), config.destination])
    return argv


def render_command(config: TunnelConfig, executable: str = "ssh") -> str:
    """Render the argument list as a single shell-quoted line for display."""
    return " ".join(shlex.quote(token) for token in build_command(config, executable))
