"""SSH transports.

Two flavours, both opening an independent connection per command so that
concurrent callers never share channel state:

- SSHTransport drives paramiko directly (key file or agent authentication).
- SSHCommandTransport runs a local ssh client given as an invocation
  prefix, e.g. ``["ssh", "-o", "BatchMode=yes"]``, the way a shell user
  would reach the filer.
"""
import logging
import shutil
import socket
import subprocess
import time
from typing import Optional

import paramiko

from ..errors import ConfigurationError, TransportError
from ..utils.connection import connect_with_retry
from ..utils.logging_config import timed, perf_logger
from .base import Transport, CommandResult, Session

logger = logging.getLogger(__name__)

# Exit status the OpenSSH client reserves for its own failures
SSH_CLIENT_FAILURE = 255


class SSHTransport(Transport):
    """Per-call paramiko connection to a filer."""

    protocol = "ssh"

    def _connect_once(self) -> paramiko.SSHClient:
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                hostname=self.session.hostname,
                port=self.session.port,
                username=self.session.username,
                key_filename=self.session.identity,
                timeout=self.session.timeout,
                allow_agent=self.session.identity is None,
                look_for_keys=self.session.identity is None,
            )
        except Exception:
            client.close()
            raise
        return client

    def _connect(self) -> paramiko.SSHClient:
        return connect_with_retry(self.config, self._connect_once)

    @timed("connect")
    def open(self) -> Session:
        """Prove that the host resolves and accepts our credentials."""
        logger.info(f"Checking ssh access to {self.session.username}@{self.session.hostname}")
        try:
            client = self._connect()
        except socket.gaierror as e:
            raise ConfigurationError(f"Cannot resolve filer host {self.session.hostname}: {e}") from e
        except paramiko.AuthenticationException as e:
            raise ConfigurationError(
                f"ssh authentication failed for {self.session.username}@{self.session.hostname}: {e}"
            ) from e
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise TransportError(f"Cannot connect to {self.session.hostname}: {e}") from e
        client.close()
        self._opened = True
        return self.session

    def execute(self, command: str) -> CommandResult:
        """Execute a command over a fresh ssh connection."""
        start = time.perf_counter()
        try:
            client = self._connect()
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise TransportError(f"ssh connection to {self.session.hostname} failed: {e}") from e

        try:
            _stdin, stdout, stderr = client.exec_command(command, timeout=self.session.timeout)
            out = stdout.read().decode("utf-8", errors="replace")
            err = stderr.read().decode("utf-8", errors="replace")
            status = stdout.channel.recv_exit_status()
        except socket.timeout as e:
            raise TransportError(f"Timed out running {command!r} on {self.session.hostname}") from e
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise TransportError(f"ssh session to {self.session.hostname} lost: {e}") from e
        finally:
            client.close()

        elapsed = time.perf_counter() - start
        perf_logger.debug(
            f"{'execute':20s} | {self.filer_id:15s} | {elapsed * 1000:8.2f}ms | "
            f"status={status} | cmd={command[:50]}"
        )
        return CommandResult(command=command, status=status, output=out + err, elapsed=elapsed)

    def close(self) -> None:
        # Nothing is held between calls
        self._opened = False


class SSHCommandTransport(Transport):
    """Run commands through a local ssh client invocation."""

    protocol = "ssh"

    def _argv(self, command: str) -> list[str]:
        argv = list(self.session.command_prefix or ["ssh"])
        if self.session.identity:
            argv += ["-i", self.session.identity]
        if self.session.port:
            argv += ["-p", str(self.session.port)]
        argv += ["-l", self.session.username, self.session.hostname, command]
        return argv

    def open(self) -> Session:
        program = (self.session.command_prefix or ["ssh"])[0]
        if shutil.which(program) is None:
            raise ConfigurationError(f"ssh client not found: {program}")
        self._opened = True
        return self.session

    def execute(self, command: str) -> CommandResult:
        argv = self._argv(command)
        logger.debug(f"Running {argv[0]} for {self.session.hostname}: {command}")
        start = time.perf_counter()
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.session.timeout,
                stdin=subprocess.DEVNULL,
            )
        except subprocess.TimeoutExpired as e:
            raise TransportError(f"Timed out running {command!r} on {self.session.hostname}") from e
        except OSError as e:
            raise TransportError(f"Cannot run {argv[0]}: {e}") from e
        elapsed = time.perf_counter() - start

        if proc.returncode == SSH_CLIENT_FAILURE:
            raise TransportError(
                f"ssh to {self.session.hostname} failed: {proc.stderr.strip() or 'exit status 255'}"
            )

        perf_logger.debug(
            f"{'execute':20s} | {self.filer_id:15s} | {elapsed * 1000:8.2f}ms | "
            f"status={proc.returncode} | cmd={command[:50]}"
        )
        return CommandResult(
            command=command,
            status=proc.returncode,
            output=(proc.stdout or "") + (proc.stderr or ""),
            elapsed=elapsed,
        )

    def close(self) -> None:
        self._opened = False
