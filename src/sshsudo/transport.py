"""SSH transport adapter around paramiko.

sshsudo never speaks the SSH protocol itself. This module gives the rest of
the package a small session abstraction over a connected paramiko client:
open a session, get its three pipes, start or run a command, wait for the
exit status, close.
"""
from __future__ import annotations

import logging
from typing import BinaryIO

import paramiko

from .errors import RemoteExitError, TransportError

logger = logging.getLogger(__name__)

# Exceptions a paramiko channel read/write can surface. socket.timeout is an
# OSError subclass.
STREAM_ERRORS = (OSError, EOFError, paramiko.SSHException)


class RemoteSession:
    """One paramiko channel used to run a single remote command."""

    def __init__(self, channel: paramiko.Channel):
        self.channel = channel

    def stdin_pipe(self) -> BinaryIO:
        """Writable stdin; closing it sends EOF to the remote command."""
        return self.channel.makefile_stdin('wb')

    def stdout_pipe(self) -> BinaryIO:
        return self.channel.makefile('rb')

    def stderr_pipe(self) -> BinaryIO:
        return self.channel.makefile_stderr('rb')

    def settimeout(self, timeout: float | None) -> None:
        self.channel.settimeout(timeout)

    def start(self, command: str) -> None:
        self.channel.exec_command(command)

    def wait(self) -> int:
        """Block until the remote command exits and return its status.

        paramiko reports -1 when the server closed the channel without
        sending an exit status (for example when the command was killed by
        a signal).
        """
        return self.channel.recv_exit_status()

    def run(self, command: str) -> None:
        """Start ``command`` and wait for it to exit successfully.

        Raises RemoteExitError on a non-zero exit status and TransportError
        for any other failure.
        """
        try:
            self.start(command)
            status = self.wait()
        except STREAM_ERRORS as exc:
            raise TransportError(f"failed to run {command!r}: {exc}") from exc
        if status == -1:
            raise TransportError(f"{command!r} exited without reporting a status")
        if status != 0:
            raise RemoteExitError(command, status)

    def close(self) -> None:
        self.channel.close()


def open_session(client: paramiko.SSHClient, timeout: float | None = None) -> RemoteSession:
    """Open a new session channel on an established client.

    ``timeout`` becomes the channel timeout: every blocking read or write on
    the session's pipes raises socket.timeout once it is exceeded.
    """
    transport = client.get_transport()
    if transport is None or not transport.is_active():
        raise TransportError("SSH transport is not connected")
    try:
        channel = transport.open_session()
    except STREAM_ERRORS as exc:
        raise TransportError(f"could not open an ssh channel: {exc}") from exc
    if timeout is not None:
        channel.settimeout(timeout)
    return RemoteSession(channel)


def connect(
    host: str,
    port: int = 22,
    username: str | None = None,
    key_filename: str | None = None,
    password: str | None = None,
    connect_timeout: float | None = None,
    strict_host_keys: bool = True,
) -> paramiko.SSHClient:
    """Connect and authenticate to ``host``, returning a ready SSHClient.

    With ``strict_host_keys`` unknown hosts are rejected; otherwise they are
    accepted with a warning. When no key file or password is given paramiko
    falls back to the agent and the usual ~/.ssh keys.
    """
    client = paramiko.SSHClient()
    client.load_system_host_keys()
    if strict_host_keys:
        client.set_missing_host_key_policy(paramiko.RejectPolicy())
    else:
        client.set_missing_host_key_policy(paramiko.WarningPolicy())

    connect_kwargs: dict = {
        'hostname': host,
        'port': port,
        'timeout': connect_timeout,
    }
    if username:
        connect_kwargs['username'] = username
    if key_filename:
        connect_kwargs['key_filename'] = key_filename
    if password:
        connect_kwargs['password'] = password
        connect_kwargs['look_for_keys'] = False
        connect_kwargs['allow_agent'] = False

    logger.debug(f"Connecting to {host}:{port} as {username or '<default user>'}")
    try:
        client.connect(**connect_kwargs)
    except paramiko.AuthenticationException as exc:
        client.close()
        raise TransportError(f"authentication to {host} failed: {exc}") from exc
    except STREAM_ERRORS as exc:
        client.close()
        raise TransportError(f"could not connect to {host}:{port}: {exc}") from exc
    return client
