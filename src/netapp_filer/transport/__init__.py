"""Transports for reaching a filer's command line."""
from ..config.schema import FilerConfig
from .base import Transport, Session, CommandResult, Outcome, find_error_banner, ERROR_PATTERNS
from .ssh import SSHTransport, SSHCommandTransport
from .telnet import TelnetTransport, TelnetSession

__all__ = [
    "Transport",
    "Session",
    "CommandResult",
    "Outcome",
    "find_error_banner",
    "ERROR_PATTERNS",
    "SSHTransport",
    "SSHCommandTransport",
    "TelnetTransport",
    "TelnetSession",
    "create_transport",
]

# Transport registry
TRANSPORT_TYPES = {
    "ssh": SSHTransport,
    "telnet": TelnetTransport,
}


def create_transport(config: FilerConfig) -> Transport:
    """Factory function to create the transport a config asks for."""
    if config.protocol == "ssh" and config.ssh_command:
        return SSHCommandTransport(config)
    transport_class = TRANSPORT_TYPES[config.protocol]
    return transport_class(config)
