"""Connection and behaviour settings for a single filer."""
import os
import shlex
from dataclasses import dataclass, field, fields
from typing import Any, Optional, Union

from ..errors import ConfigurationError

PROTOCOLS = ("ssh", "telnet")

DEFAULT_PORTS = {
    "ssh": 22,
    "telnet": 23,
}


@dataclass
class FilerConfig:
    """Configuration for a filer.

    Only ``hostname`` is required. Validation happens at construction and
    raises ConfigurationError, so a FilerConfig that exists is usable.
    """
    hostname: str
    username: str = "root"
    protocol: str = "ssh"
    port: Optional[int] = None
    # ssh
    ssh_identity: Optional[str] = None
    ssh_command: Optional[Union[list[str], str]] = None
    # telnet
    telnet_password: Optional[str] = None
    password_env: str = "FILER_PASSWORD"
    telnet_timeout: int = 300
    # behaviour
    command_timeout: float = 60
    connect_retries: int = 3
    retry_delay: float = 2
    cache_enabled: bool = False
    cache_expiration: int = 10
    name: str = ""
    tags: dict = field(default_factory=dict)

    def __post_init__(self):
        if not self.hostname:
            raise ConfigurationError("Missing required field: hostname")

        self.protocol = (self.protocol or "").lower()
        if self.protocol not in PROTOCOLS:
            raise ConfigurationError(
                f"Invalid protocol: {self.protocol!r}. Must be one of {', '.join(PROTOCOLS)}"
            )

        if self.ssh_identity:
            self.ssh_identity = os.path.expanduser(self.ssh_identity)
            if not os.path.isfile(self.ssh_identity):
                raise ConfigurationError(f"No such ssh identity file: {self.ssh_identity}")
            if not os.access(self.ssh_identity, os.R_OK):
                raise ConfigurationError(f"Unreadable ssh identity file: {self.ssh_identity}")

        if isinstance(self.ssh_command, str):
            self.ssh_command = shlex.split(self.ssh_command)
        if self.ssh_command is not None and not self.ssh_command:
            raise ConfigurationError("ssh_command must not be empty")

        if self.protocol == "telnet" and not self.get_password():
            raise ConfigurationError(
                f"telnet to {self.hostname} requires telnet_password or ${self.password_env}"
            )

        if self.cache_expiration < 0:
            raise ConfigurationError("cache_expiration must be >= 0")

        if self.connect_retries < 1:
            raise ConfigurationError("connect_retries must be >= 1")

        if not self.name:
            self.name = self.hostname

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FilerConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    @property
    def effective_port(self) -> int:
        return self.port or DEFAULT_PORTS[self.protocol]

    def get_password(self) -> str:
        """Get telnet password from config or environment variable."""
        if self.telnet_password:
            return self.telnet_password
        return os.environ.get(self.password_env, "")
