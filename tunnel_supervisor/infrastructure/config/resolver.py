"""
Resolution of raw settings into a ``TunnelConfig``.

All precondition checks happen here, before any subprocess exists:
the endpoint host, the presence of at least one forwarding mechanism and the
mounted private key.
"""

import logging
import os
import shlex
import shutil
from pathlib import Path
from typing import Optional, Tuple

from ...core.domain.forwarding import ForwardDirection, ForwardSpec, parse_forward_spec
from ...core.domain.tunnel import TunnelConfig
from ...core.exceptions import (
    CredentialInstallFailed,
    CredentialNotFound,
    InvalidConfigValue,
    MissingRequiredField,
    NoForwardingConfigured,
)
from .models import CredentialConfig, TunnelSettings

logger = logging.getLogger(__name__)


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class ConfigurationResolver:
    """
    Resolves tunnel settings and installs the private key.

    The resolver never spawns anything; ``install_credentials`` is the only
    method with filesystem side effects.
    """

    def __init__(self, settings: TunnelSettings, credentials: Optional[CredentialConfig] = None) -> None:
        self._settings = settings
        self._credentials = credentials or CredentialConfig()

    @property
    def source_key_path(self) -> Path:
        return Path(self._credentials.source_path).expanduser()

    @property
    def private_key_path(self) -> Path:
        return Path(self._credentials.private_path).expanduser()

    def resolve(self, check_credentials: bool = True) -> TunnelConfig:
        """
        Build the resolved tunnel configuration.

        Args:
            check_credentials: Require the private key to be mounted

        Returns:
            Resolved configuration

        Raises:
            MissingRequiredField: If the host is missing
            NoForwardingConfigured: If no forward or extra option is given
            CredentialNotFound: If the private key is not mounted
            InvalidForwardSpec: If a forward specification is malformed
            InvalidConfigValue: If the port is not a valid number
        """
        settings = self._settings

        if _blank(settings.host):
            raise MissingRequiredField("host", "SSH_HOST")

        extra_options = self._split_options(settings.extra_options)
        if _blank(settings.local_forward) and _blank(settings.remote_forward) and not extra_options:
            raise NoForwardingConfigured()

        if check_credentials and not self.source_key_path.is_file():
            raise CredentialNotFound(str(self.source_key_path))

        local_forward = self._parse_forward(settings.local_forward, ForwardDirection.LOCAL)
        remote_forward = self._parse_forward(settings.remote_forward, ForwardDirection.REMOTE)

        return TunnelConfig(
            host=str(settings.host).strip(),
            user=settings.user.strip() if not _blank(settings.user) else "root",
            port=self._parse_port(settings.port),
            local_forward=local_forward,
            remote_forward=remote_forward,
            extra_options=extra_options,
            identity_file=str(self.private_key_path),
        )

    def install_credentials(self) -> Path:
        """
        Copy the mounted private key to a private, writable location.

        The copy is owner read/write only so that the ssh client accepts it
        and can re-read it on every reconnect independently of the mount.

        Returns:
            Path of the private copy

        Raises:
            CredentialNotFound: If the mounted key is missing
            CredentialInstallFailed: If the key cannot be read or written
        """
        source = self.source_key_path
        target = self.private_key_path

        if not source.is_file():
            raise CredentialNotFound(str(source))

        try:
            # Only tighten a directory we create, never a shared one
            if not target.parent.exists():
                target.parent.mkdir(parents=True)
                os.chmod(target.parent, 0o700)

            with open(source, "rb") as src:
                fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
                # A previous copy may have looser permissions
                os.fchmod(fd, 0o600)
                with os.fdopen(fd, "wb") as dst:
                    shutil.copyfileobj(src, dst)
        except OSError as e:
            raise CredentialInstallFailed(str(target), e)

        logger.debug(f"Private key copied from {source} to {target}")
        return target

    def _parse_forward(self, raw: Optional[str], direction: ForwardDirection) -> Optional[ForwardSpec]:
        if _blank(raw):
            return None
        return parse_forward_spec(str(raw), direction)

    def _parse_port(self, port: object) -> int:
        try:
            value = int(port)  # type: ignore[call-overload]
        except (TypeError, ValueError):
            raise InvalidConfigValue(f"SSH port must be an integer, got {port!r}")

        if not (1 <= value <= 65535):
            raise InvalidConfigValue(f"SSH port must be between 1 and 65535, got {value}")
        return value

    def _split_options(self, options: object) -> Tuple[str, ...]:
        """Tokenize extra options without any shell evaluation."""
        if options is None:
            return ()
        if isinstance(options, (list, tuple)):
            return tuple(str(token) for token in options)

        try:
            return tuple(shlex.split(str(options)))
        except ValueError as e:
            raise InvalidConfigValue(f"Cannot parse SSH options {options!r}: {e}")
