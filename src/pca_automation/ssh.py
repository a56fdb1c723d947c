"""SSH transport that runs batches of shell commands on a remote host."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, Optional, Protocol, Sequence

import paramiko

from .config import SshConfig
from .models import CommandBatchResult, ConnectionInfo

logger = logging.getLogger(__name__)


class RemoteConnectionError(RuntimeError):
    """Raised when an SSH session to the remote host cannot be established."""

    def __init__(self, connection: ConnectionInfo, reason: str) -> None:
        super().__init__(f"Cannot connect to {connection.address}: {reason}")
        self.connection = connection
        self.reason = reason


class CommandExecutor(Protocol):
    def execute(self, commands: Sequence[str], connection: ConnectionInfo) -> CommandBatchResult:
        ...


class SshCommandExecutor:
    """Runs each command of a batch in order over a single SSH session.

    Every entry, whether a single line or a multi-line script, is handed to
    the remote shell as one command. A non-zero exit status counts as a
    failure and the batch carries on with the next command; only failures to
    open the session are raised.
    """

    def __init__(self, settings: Optional[SshConfig] = None) -> None:
        self._settings = settings or SshConfig()

    def execute(self, commands: Sequence[str], connection: ConnectionInfo) -> CommandBatchResult:
        success_count = 0
        failure_count = 0
        with self._session(connection) as client:
            for index, command in enumerate(commands, start=1):
                exit_status = self._run(client, command)
                if exit_status == 0:
                    success_count += 1
                else:
                    failure_count += 1
                    logger.debug(
                        "Command %d/%d on %s exited with status %s",
                        index,
                        len(commands),
                        connection.host,
                        exit_status,
                    )
        return CommandBatchResult(
            command_count=len(commands),
            success_count=success_count,
            failure_count=failure_count,
        )

    def _run(self, client: paramiko.SSHClient, command: str) -> int:
        logger.debug("Executing: %s", command)
        try:
            _, stdout, stderr = client.exec_command(command, timeout=self._settings.command_timeout)
            output = stdout.read().decode(errors="replace")
            errors = stderr.read().decode(errors="replace")
            exit_status = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, EOFError, OSError) as exc:
            logger.warning("Command did not complete: %s", exc)
            return -1
        if output:
            logger.debug("stdout: %s", output.rstrip())
        if errors:
            logger.debug("stderr: %s", errors.rstrip())
        return exit_status

    @contextmanager
    def _session(self, connection: ConnectionInfo) -> Generator[paramiko.SSHClient, None, None]:
        client = paramiko.SSHClient()
        if self._settings.strict_host_key_checking:
            client.load_system_host_keys()
            client.set_missing_host_key_policy(paramiko.RejectPolicy())
        else:
            client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        logger.debug("Connecting to %s", connection.address)
        try:
            client.connect(
                connection.host,
                port=connection.port,
                username=connection.username,
                password=connection.password,
                key_filename=connection.private_key,
                passphrase=connection.password if connection.private_key else None,
                look_for_keys=connection.private_key is None and connection.password is None,
                timeout=self._settings.connect_timeout,
                banner_timeout=self._settings.banner_timeout,
                auth_timeout=self._settings.auth_timeout,
            )
        except paramiko.AuthenticationException as exc:
            client.close()
            raise RemoteConnectionError(connection, f"authentication failed ({exc})") from exc
        except (paramiko.SSHException, OSError) as exc:
            client.close()
            raise RemoteConnectionError(connection, str(exc) or exc.__class__.__name__) from exc

        try:
            yield client
        finally:
            client.close()
