"""
Configuration infrastructure.

Provides the configuration models, the file/environment loader and the
resolver that turns raw settings into a validated tunnel configuration.
"""

from .models import (
    ApplicationConfig,
    CredentialConfig,
    LoggingConfig,
    SupervisorConfig,
    TunnelSettings,
)
from .loader import ConfigLoader
from .resolver import ConfigurationResolver

__all__ = [
    "ApplicationConfig",
    "CredentialConfig",
    "LoggingConfig",
    "SupervisorConfig",
    "TunnelSettings",
    "ConfigLoader",
    "ConfigurationResolver",
]
