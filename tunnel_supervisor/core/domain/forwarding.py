"""
Port forwarding specifications.

A forwarding rule is written the way ``ssh -L`` and ``ssh -R`` accept it:
``[bind_address:]port:host:hostport``. When the bind address is omitted a
direction-specific default is inserted so that every parsed rule carries all
four fields.
"""

from dataclasses import dataclass
from enum import Enum

from ..exceptions import InvalidForwardSpec


class ForwardDirection(Enum):
    """SSH forwarding directions."""
    LOCAL = "local"
    REMOTE = "remote"

    @property
    def flag(self) -> str:
        """Command-line flag of the ssh client for this direction."""
        return "-L" if self is ForwardDirection.LOCAL else "-R"


# Local forwards listen inside the container, so every interface is reachable
# through published ports. Remote forwards stay on the server's loopback.
DEFAULT_BIND_ADDRESSES = {
    ForwardDirection.LOCAL: "0.0.0.0",
    ForwardDirection.REMOTE: "localhost",
}


@dataclass(frozen=True)
class ForwardSpec:
    """A single resolved forwarding rule."""
    direction: ForwardDirection
    bind_address: str
    port: int
    target_host: str
    target_port: int

    def canonical(self) -> str:
        """Render the rule in its four-field ``bind:port:host:port`` form."""
        return f"{self.bind_address}:{self.port}:{self.target_host}:{self.target_port}"

    def __str__(self) -> str:
        return self.canonical()


def _parse_port(raw: str, value: str, label: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise InvalidForwardSpec(raw, f"{label} {value!r} is not a number")

    if not (1 <= port <= 65535):
        raise InvalidForwardSpec(
            raw, f"{label} must be between 1 and 65535, got {port}")
    return port


def parse_forward_spec(raw: str, direction: ForwardDirection) -> ForwardSpec:
    """
    Parse a forwarding specification string.

    Args:
        raw: ``port:host:hostport`` or ``bind_address:port:host:hostport``
        direction: Whether the rule is a local or a remote forward

    Returns:
        The parsed rule with the bind address filled in

    Raises:
        InvalidForwardSpec: If the string is empty, has the wrong number of
            fields, or carries a non-numeric/out-of-range port
    """
    if raw is None or not raw.strip():
        raise InvalidForwardSpec(raw or "", "specification is empty")

    fields = raw.strip().split(":")

    if len(fields) == 3:
        fields.insert(0, DEFAULT_BIND_ADDRESSES[direction])
    elif len(fields) != 4:
        raise InvalidForwardSpec(
            raw, f"expected 3 or 4 colon-separated fields, got {len(fields)}")

    # The bind address is passed through untouched; the ssh client rejects
    # bad addresses itself because ExitOnForwardFailure is always set.
    bind_address, port, target_host, target_port = fields

    if not target_host:
        raise InvalidForwardSpec(raw, "target host is empty")

    return ForwardSpec(
        direction=direction,
        bind_address=bind_address,
        port=_parse_port(raw, port, "port"),
        target_host=target_host,
        target_port=_parse_port(raw, target_port, "target port"),
    )

