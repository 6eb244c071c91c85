"""Transport abstraction for running command lines on a filer."""
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..config.schema import FilerConfig
from ..errors import CommandError

logger = logging.getLogger(__name__)

# Error banners printed by the appliance CLI. Matched per stripped line so
# that data such as "cifs not licensed" or "Volume vol0: ..." never trips them.
ERROR_PATTERNS = [
    r"^usage:",
    r"^(aggr|vol|qtree|snap|snapmirror|license|options|exportfs|rdfile)( \S+)?:\s",
    r"^\S+: not found",
    r"^error\b",
    r"^invalid\b",
    r"^permission denied",
]

_ERROR_RE = [re.compile(p, re.IGNORECASE) for p in ERROR_PATTERNS]


def find_error_banner(output: str) -> Optional[str]:
    """Return the first line of output that is an error banner, if any."""
    for line in output.splitlines():
        line_stripped = line.strip()
        if not line_stripped:
            continue
        for pattern in _ERROR_RE:
            if pattern.search(line_stripped):
                return line_stripped
    return None


class Outcome(str, Enum):
    """Classification of one command execution."""
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass
class Session:
    """Everything needed to reach one filer."""
    protocol: str
    hostname: str
    port: int
    username: str
    identity: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    command_prefix: Optional[list[str]] = None
    timeout: float = 60
    idle_timeout: float = 300

    @classmethod
    def from_config(cls, config: FilerConfig) -> "Session":
        return cls(
            protocol=config.protocol,
            hostname=config.hostname,
            port=config.effective_port,
            username=config.username,
            identity=config.ssh_identity,
            password=config.get_password() or None,
            command_prefix=list(config.ssh_command) if config.ssh_command else None,
            timeout=config.command_timeout,
            idle_timeout=config.telnet_timeout,
        )


@dataclass
class CommandResult:
    """Result of a command execution on a filer."""
    command: str
    status: int
    output: str
    elapsed: float = 0.0

    @property
    def error(self) -> Optional[str]:
        """Error line explaining a failure, or None on success."""
        banner = find_error_banner(self.output)
        if banner:
            return banner
        if self.status != 0:
            return f"exit status {self.status}"
        return None

    @property
    def outcome(self) -> Outcome:
        if self.error is not None:
            return Outcome.FAILED
        if not self.output.strip():
            return Outcome.EMPTY
        return Outcome.OK

    @property
    def success(self) -> bool:
        return self.outcome is not Outcome.FAILED

    def check(self) -> "CommandResult":
        """Raise CommandError if the command failed, otherwise return self."""
        error = self.error
        if error is not None:
            raise CommandError(self.command, self.output, status=self.status, message=error)
        return self

    def __repr__(self) -> str:
        return f"CommandResult({self.outcome.value.upper()}, cmd={self.command[:50]!r})"


class Transport(ABC):
    """Abstract remote shell to one filer.

    Implementations never raise CommandError themselves: a failed command is
    reported through CommandResult and classified by the caller.
    Connection problems raise TransportError, fatal setup problems
    (unresolvable host, rejected credentials) raise ConfigurationError
    from open().
    """

    protocol: str = ""

    def __init__(self, config: FilerConfig):
        self.config = config
        self.session = Session.from_config(config)
        self._opened = False

    @property
    def filer_id(self) -> str:
        return self.config.name

    @property
    def is_open(self) -> bool:
        return self._opened

    @abstractmethod
    def open(self) -> Session:
        """Validate reachability and credentials; return the session."""
        pass

    @abstractmethod
    def execute(self, command: str) -> CommandResult:
        """Run one command line and capture its output."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release any held connection."""
        pass

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
