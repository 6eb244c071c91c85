"""Exception hierarchy for filer management."""
from typing import Optional


class FilerError(Exception):
    """Base class for all errors raised by this package."""
    pass


class ConfigurationError(FilerError):
    """Invalid or incomplete filer configuration (fatal, raised at construction)."""
    pass


class TransportError(FilerError):
    """Connection, authentication, timeout or session loss on the transport."""
    pass


class CommandError(FilerError):
    """The appliance rejected or failed a command.

    Carries the command line and the raw output verbatim so callers can
    diagnose the failure. Never retried automatically.
    """

    def __init__(
        self,
        command: str,
        output: str = "",
        status: Optional[int] = None,
        message: Optional[str] = None,
    ):
        self.command = command
        self.output = output
        self.status = status
        self.message = message or self._first_line(output) or "command failed"
        super().__init__(f"{command!r}: {self.message}")

    @staticmethod
    def _first_line(output: str) -> str:
        for line in output.splitlines():
            if line.strip():
                return line.strip()
        return ""


class ParseError(FilerError):
    """Output did not match the grammar expected for a resource kind."""

    def __init__(self, kind: str, line: str):
        self.kind = kind
        self.line = line
        super().__init__(f"Unable to parse {kind} output near: {line!r}")


class NotFoundError(FilerError, LookupError):
    """A keyed lookup found no matching record."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"No such {kind}: {key}")
