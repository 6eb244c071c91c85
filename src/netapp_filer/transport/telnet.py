"""Telnet transport for filers.

The appliance allows a single root telnet session at a time, so one
session is held for the lifetime of the Filer and every command is
serialized through it. The appliance drops idle sessions after its
telnet timeout; the transport notices this (proactively from the idle
clock, or from EOF on the socket) and logs in again before sending.

Login sequence on Data ONTAP 7-mode:
    login: root
    Password: ********
    filer1>
"""
import logging
import re
import socket
import threading
import time
from typing import Optional

from ..errors import ConfigurationError, TransportError
from ..utils.connection import connect_with_retry, RETRYABLE_EXCEPTIONS
from ..utils.logging_config import timed, perf_logger
from .base import Transport, CommandResult, Session

logger = logging.getLogger(__name__)

# Telnet protocol bytes (RFC 854)
IAC = 255
DONT = 254
DO = 253
WONT = 252
WILL = 251
SB = 250
SE = 240

LOGIN_PATTERN = re.compile(r"(login|username)\s*:\s*$", re.IGNORECASE)
PASSWORD_PATTERN = re.compile(r"password\s*:\s*$", re.IGNORECASE)
LOGIN_FAILED_PATTERN = re.compile(r"login incorrect|access denied|authentication failed", re.IGNORECASE)
# "filer1> " or "filer1*> " in advanced privilege mode
PROMPT_PATTERN = re.compile(r"(?:^|[\r\n])[\w.\-]+\*?>\s*$")


class SessionClosed(EOFError):
    """The remote side closed the telnet connection."""
    pass


class CommandNotSent(SessionClosed):
    """The session was found closed before the command was written."""
    pass


def strip_negotiation(data: bytes) -> tuple[bytes, bytes]:
    """Split option negotiation from payload.

    Returns (payload, reply): every DO is refused with WONT and every WILL
    with DONT, sub-negotiations are discarded.
    """
    payload = bytearray()
    reply = bytearray()
    i = 0
    while i < len(data):
        byte = data[i]
        if byte != IAC:
            payload.append(byte)
            i += 1
            continue
        if i + 1 >= len(data):
            break
        cmd = data[i + 1]
        if cmd == IAC:
            payload.append(IAC)
            i += 2
        elif cmd in (DO, DONT, WILL, WONT):
            if i + 2 >= len(data):
                break
            option = data[i + 2]
            if cmd == DO:
                reply += bytes([IAC, WONT, option])
            elif cmd == WILL:
                reply += bytes([IAC, DONT, option])
            i += 3
        elif cmd == SB:
            end = data.find(bytes([IAC, SE]), i + 2)
            i = len(data) if end < 0 else end + 2
        else:
            i += 2
    return bytes(payload), bytes(reply)


class TelnetSession:
    """Low-level telnet conversation with one filer."""

    def __init__(self, host: str, port: int, timeout: float = 30):
        self.host = host
        self.port = port
        self.timeout = timeout
        self._socket: Optional[socket.socket] = None

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def connect(self) -> None:
        """Establish the TCP connection."""
        self._socket = socket.create_connection((self.host, self.port), timeout=self.timeout)

    def close(self) -> None:
        if self._socket:
            try:
                self._socket.close()
            except OSError as e:
                logger.debug(f"Error closing telnet socket to {self.host}: {e}")
            self._socket = None

    def _send_raw(self, data: bytes) -> None:
        if not self._socket:
            raise SessionClosed("Not connected")
        self._socket.sendall(data)

    def _read_available(self, timeout: float = 1) -> str:
        """Read whatever arrives within timeout; raise SessionClosed on EOF."""
        if not self._socket:
            raise SessionClosed("Not connected")
        self._socket.settimeout(timeout)
        try:
            data = self._socket.recv(8192)
        except socket.timeout:
            return ""
        if not data:
            raise SessionClosed(f"Connection closed by {self.host}")
        payload, reply = strip_negotiation(data)
        if reply:
            self._send_raw(reply)
        return payload.decode("ascii", errors="ignore")

    def read_until(self, pattern: re.Pattern, timeout: float) -> str:
        """Read until pattern matches the accumulated output."""
        output = ""
        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError(f"Timed out waiting for {pattern.pattern!r} from {self.host}")
            try:
                output += self._read_available(timeout=min(2, remaining))
            except SessionClosed:
                if output:
                    raise ConnectionResetError(f"{self.host} closed the session mid-response") from None
                raise
            if pattern.search(output):
                return output

    def login(self, username: str, password: str) -> None:
        """Answer the login and password prompts and wait for the shell prompt."""
        self.read_until(LOGIN_PATTERN, self.timeout)
        self._send_raw(f"{username}\r\n".encode())
        self.read_until(PASSWORD_PATTERN, self.timeout)
        self._send_raw(f"{password}\r\n".encode())

        output = ""
        deadline = time.monotonic() + self.timeout
        while time.monotonic() < deadline:
            output += self._read_available(timeout=1)
            if LOGIN_FAILED_PATTERN.search(output) or LOGIN_PATTERN.search(output):
                raise PermissionError(f"telnet login to {self.host} rejected for {username}")
            if PROMPT_PATTERN.search(output):
                return
        raise TimeoutError(f"No prompt from {self.host} after login")

    def _peer_closed(self) -> bool:
        """True when EOF is already waiting on the socket."""
        self._socket.settimeout(0)
        try:
            return self._socket.recv(1, socket.MSG_PEEK) == b""
        except (BlockingIOError, socket.timeout):
            return False
        except ConnectionResetError:
            return True
        finally:
            self._socket.settimeout(self.timeout)

    def send_command(self, command: str, timeout: float = 60) -> str:
        """Send a command and return its output without echo and prompt.

        Raises CommandNotSent when the filer had already dropped the
        session, and SessionClosed when it drops it after the command was
        written.
        """
        if not self._socket or self._peer_closed():
            raise CommandNotSent(f"Connection to {self.host} closed before {command!r} was sent")
        self._send_raw(f"{command}\r\n".encode())
        output = self.read_until(PROMPT_PATTERN, timeout)

        lines = output.replace("\r", "").split("\n")
        if lines and command in lines[0]:
            lines = lines[1:]
        if lines and PROMPT_PATTERN.search("\n" + lines[-1]):
            lines = lines[:-1]
        return "\n".join(lines).strip("\n")


class TelnetTransport(Transport):
    """Single persistent telnet session, one command in flight at a time."""

    protocol = "telnet"

    def __init__(self, config):
        super().__init__(config)
        self._lock = threading.Lock()
        self._telnet: Optional[TelnetSession] = None
        self._last_used = 0.0

    def _new_session(self) -> TelnetSession:
        return TelnetSession(self.session.hostname, self.session.port, timeout=self.session.timeout)

    def _login_once(self) -> TelnetSession:
        telnet = self._new_session()
        try:
            telnet.connect()
            telnet.login(self.session.username, self.session.password or "")
        except Exception:
            telnet.close()
            raise
        return telnet

    def _login(self) -> TelnetSession:
        return connect_with_retry(
            self.config, self._login_once,
            exceptions=(ConnectionRefusedError, ConnectionResetError, TimeoutError, EOFError),
        )

    def _reconnect(self) -> None:
        """Drop any held session and log in again. Caller holds the lock."""
        if self._telnet is not None:
            self._telnet.close()
            self._telnet = None
        try:
            self._telnet = self._login()
        except PermissionError as e:
            raise ConfigurationError(str(e)) from e
        except socket.gaierror as e:
            raise ConfigurationError(f"Cannot resolve filer host {self.session.hostname}: {e}") from e
        except RETRYABLE_EXCEPTIONS as e:
            raise TransportError(f"telnet to {self.session.hostname} failed: {e}") from e
        self._last_used = time.monotonic()
        logger.info(f"telnet session to {self.session.hostname} established")

    def _idle_expired(self) -> bool:
        return time.monotonic() - self._last_used >= self.session.idle_timeout

    @timed("connect")
    def open(self) -> Session:
        with self._lock:
            self._reconnect()
        self._opened = True
        return self.session

    def execute(self, command: str) -> CommandResult:
        """Execute a command, waiting for any command already in flight.

        A command is sent a second time, on a fresh session, only when the
        old session was found closed before the command was written. Once
        written it is never resent, since the filer may have run it.
        """
        with self._lock:
            start = time.perf_counter()
            if self._telnet is None or not self._telnet.connected or self._idle_expired():
                logger.debug(f"telnet session to {self.session.hostname} idle or closed, reopening")
                self._reconnect()

            try:
                output = self._send(command)
            except CommandNotSent:
                logger.info(f"telnet session to {self.session.hostname} was closed, reopening")
                self._reconnect()
                try:
                    output = self._send(command)
                except (SessionClosed, *RETRYABLE_EXCEPTIONS) as e:
                    self._drop()
                    raise TransportError(f"telnet session to {self.session.hostname} lost: {e}") from e
            except RETRYABLE_EXCEPTIONS as e:
                self._drop()
                raise TransportError(f"telnet session to {self.session.hostname} lost: {e}") from e

            self._last_used = time.monotonic()
            elapsed = time.perf_counter() - start

        perf_logger.debug(
            f"{'execute':20s} | {self.filer_id:15s} | {elapsed * 1000:8.2f}ms | cmd={command[:50]}"
        )
        # Telnet carries no exit status; failures are recognised from banners
        return CommandResult(command=command, status=0, output=output, elapsed=elapsed)

    def _send(self, command: str) -> str:
        return self._telnet.send_command(command, timeout=self.session.timeout)

    def _drop(self) -> None:
        if self._telnet is not None:
            self._telnet.close()
            self._telnet = None

    def close(self) -> None:
        with self._lock:
            self._drop()
        self._opened = False
        logger.info(f"telnet session to {self.session.hostname} closed")
