"""
Configuration models and data structures.

This module defines the raw configuration consumed by the supervisor. Values
here are unresolved: forwarding rules are still strings and the host may be
missing. ``ConfigurationResolver`` turns them into a ``TunnelConfig``.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union

from ...core.exceptions import InvalidConfigValue


@dataclass
class TunnelSettings:
    """Tunnel endpoint and forwarding inputs."""
    host: Optional[str] = None
    user: str = "root"
    port: int = 22
    local_forward: Optional[str] = None
    remote_forward: Optional[str] = None
    # Either a raw option string ("-o Compression=yes -v") or a token list
    extra_options: Optional[Union[str, List[str]]] = None


@dataclass
class CredentialConfig:
    """Private key locations."""
    source_path: str = "/ssh-keys/id_rsa"
    private_path: str = "~/.ssh/id_rsa"


@dataclass
class SupervisorConfig:
    """Process supervision and health check settings."""
    executable: str = "ssh"
    health_interval: float = 30.0
    probe_timeout: float = 1.0
    probe_host: str = "127.0.0.1"
    grace_period: float = 10.0


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_directory: str = "logs"
    max_file_size: str = "10MB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = False


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    name: str = "Tunnel Supervisor"
    version: str = "0.1.0"
    debug: bool = False

    tunnel: TunnelSettings = field(default_factory=TunnelSettings)
    credentials: CredentialConfig = field(default_factory=CredentialConfig)
    supervisor: SupervisorConfig = field(default_factory=SupervisorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_file_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_ports()
        self._validate_timeouts()
        self._validate_log_level()

    def _validate_ports(self) -> None:
        """Validate port numbers."""
        port = self.tunnel.port
        if isinstance(port, bool) or not isinstance(port, int):
            raise InvalidConfigValue(f"SSH port must be an integer, got {port!r}")
        if not (1 <= port <= 65535):
            raise InvalidConfigValue(
                f"SSH port must be between 1 and 65535, got {port}")

    def _validate_timeouts(self) -> None:
        """Validate timeout values."""
        timeouts = [
            ("Health check interval", self.supervisor.health_interval),
            ("Probe timeout", self.supervisor.probe_timeout),
            ("Grace period", self.supervisor.grace_period),
        ]

        for name, timeout in timeouts:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise InvalidConfigValue(f"{name} must be a number, got {timeout!r}")
            if timeout <= 0:
                raise InvalidConfigValue(f"{name} must be positive, got {timeout}")

    def _validate_log_level(self) -> None:
        levels = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")
        if not isinstance(self.logging.level, str) or self.logging.level.upper() not in levels:
            raise InvalidConfigValue(f"Unknown log level: {self.logging.level}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary."""
        try:
            tunnel_config = TunnelSettings(**data.get('tunnel', {}))
            credential_config = CredentialConfig(**data.get('credentials', {}))
            supervisor_config = SupervisorConfig(**data.get('supervisor', {}))
            logging_config = LoggingConfig(**data.get('logging', {}))
        except TypeError as e:
            raise InvalidConfigValue(f"Unknown configuration key: {e}")

        return cls(
            name=data.get('name', 'Tunnel Supervisor'),
            version=data.get('version', '0.1.0'),
            debug=data.get('debug', False),
            tunnel=tunnel_config,
            credentials=credential_config,
            supervisor=supervisor_config,
            logging=logging_config,
            config_file_path=data.get('config_file_path'),
        )
