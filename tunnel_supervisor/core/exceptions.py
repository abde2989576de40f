"""
Exception hierarchy for the tunnel supervisor.

Configuration and precondition errors derive from ``ConfigurationException``
and are raised before any subprocess is spawned. Runtime errors describe the
child process lifecycle.
"""

from typing import Optional


class SupervisorException(Exception):
    """Base class for all tunnel supervisor errors."""
    pass


class ConfigurationException(SupervisorException):
    """Raised when the supervisor inputs cannot be resolved."""
    pass


class MissingRequiredField(ConfigurationException):
    """Raised when a required configuration input is absent or empty."""

    def __init__(self, field_name: str, env_var: Optional[str] = None) -> None:
        self.field_name = field_name
        self.env_var = env_var
        source = f" ({env_var} environment variable)" if env_var else ""
        super().__init__(f"Required setting '{field_name}'{source} is missing")


class NoForwardingConfigured(ConfigurationException):
    """Raised when neither forwarding rules nor extra options are configured."""

    def __init__(self) -> None:
        super().__init__(
            "At least one of local_forward (SSH_LOCAL_FORWARD), "
            "remote_forward (SSH_REMOTE_FORWARD) or extra_options (SSH_OPTIONS) "
            "must be specified; the supervisor only runs forwarding tunnels"
        )


class CredentialNotFound(ConfigurationException):
    """Raised when the private key file is not present at its mount path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"Private key not found at {path}; "
            f"mount your private key file to {path}"
        )


class CredentialInstallFailed(ConfigurationException):
    """Raised when the private key cannot be copied to its private location."""

    def __init__(self, path: str, error: OSError) -> None:
        self.path = path
        self.error = error
        super().__init__(f"Cannot install private key to {path}: {error}")


class InvalidForwardSpec(ConfigurationException):
    """Raised when a forwarding specification string cannot be parsed."""

    def __init__(self, raw: str, reason: str) -> None:
        self.raw = raw
        self.reason = reason
        super().__init__(
            f"Invalid forward specification {raw!r}: {reason} "
            f"(expected [bind_address:]port:host:port)"
        )


class InvalidConfigValue(ConfigurationException):
    """Raised when a configuration value has the wrong type or range."""
    pass


class SpawnFailed(SupervisorException):
    """Raised when the tunnel client binary cannot be launched."""

    def __init__(self, executable: str, error: Exception) -> None:
        self.executable = executable
        self.error = error
        super().__init__(f"Failed to launch {executable}: {error}")


class ChildCrashed(SupervisorException):
    """Raised when the tunnel process exits without being asked to."""

    def __init__(self, pid: Optional[int], returncode: Optional[int]) -> None:
        self.pid = pid
        self.returncode = returncode
        super().__init__(
            f"SSH process {pid} terminated unexpectedly (exit code {returncode})"
        )


class InvalidStateTransition(SupervisorException):
    """Raised on a lifecycle transition outside the tunnel state graph."""
    pass


class HealthProbeFailed(SupervisorException):
    """Raised by a health probe that could not reach the forwarded port.

    Never fatal: the health monitor logs it and keeps probing.
    """

    def __init__(self, host: Optional[str], port: Optional[int], error: Optional[BaseException] = None) -> None:
        self.host = host
        self.port = port
        self.error = error
        if port is None:
            super().__init__("SSH process is not running")
            return
        detail = f": {str(error) or type(error).__name__}" if error is not None else ""
        super().__init__(f"Cannot connect to {host}:{port}{detail}")
