"""Run commands through sudo on a remote host over an SSH client.

The handshake:

1. ``sudo -n -v`` on a separate session decides whether a password is needed.
2. ``sudo -S`` is started with either ``-n`` or a random ``-p`` prompt, running
   ``/bin/sh -c 'echo READY;<quoted command>'``.
3. When a password is needed, the random prompt is awaited on stderr and the
   password from the callback is written to stdin.
4. ``READY\\n`` is awaited on stdout. Only then are the live streams returned.

Any failure before step 4 completes closes the session.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import BinaryIO

import paramiko

from . import transport
from .errors import (
    ExpectReadError,
    NoReadyFlagError,
    NoSudoPromptError,
    PasswordCallbackError,
    PolicyCheckError,
    RemoteExitError,
    StreamWriteError,
    TransportError,
)
from .expect import expect_only
from .password import PasswordCallback
from .utils.quoting import join_args, quote_arg

logger = logging.getLogger(__name__)

READY_FLAG = 'READY'
SUDO_CHECK_COMMAND = 'sudo -n -v'
SHELL_COMMAND = ('sh', '-')


@dataclass
class SudoProcess:
    """A remote command running under sudo, after a successful handshake.

    The caller owns every field: close ``stdin`` to signal EOF and call
    ``wait()`` for the exit status, or use ``communicate()`` for both.
    """
    stdin: BinaryIO
    stdout: BinaryIO
    stderr: BinaryIO
    session: transport.RemoteSession
    command_line: str

    def wait(self) -> int:
        return self.session.wait()

    def communicate(self, input: bytes | None = None) -> tuple[bytes, bytes]:
        """Send ``input``, close stdin, and read stdout and stderr to EOF.

        Both outputs are drained concurrently so a chatty stderr cannot stall
        stdout. Does not wait for the exit status.
        """
        if input:
            self.stdin.write(input)
            self.stdin.flush()
        self.stdin.close()
        with ThreadPoolExecutor(max_workers=2) as pool:
            out = pool.submit(self.stdout.read)
            err = pool.submit(self.stderr.read)
            return out.result(), err.result()

    def close(self) -> None:
        try:
            self.stdin.close()
        finally:
            self.session.close()

    def __enter__(self) -> SudoProcess:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def check_sudo_needs_password(client: paramiko.SSHClient, *, timeout: float | None = None) -> bool:
    """Return True if sudo on the remote host will ask for a password.

    Runs ``sudo -n -v`` on its own short-lived session. A non-zero exit means
    sudo could not validate without a password. Any other failure is raised as
    PolicyCheckError. The result is never cached: sudo's credential cache can
    expire between calls.
    """
    try:
        session = transport.open_session(client, timeout=timeout)
    except TransportError as exc:
        raise PolicyCheckError(
            f"could not run {SUDO_CHECK_COMMAND} to check for sudo password requirement: {exc}"
        ) from exc
    try:
        session.run(SUDO_CHECK_COMMAND)
    except RemoteExitError as exc:
        logger.debug(f"{SUDO_CHECK_COMMAND} exited with {exc.exit_status}; password required")
        return True
    except TransportError as exc:
        raise PolicyCheckError(
            f"could not run {SUDO_CHECK_COMMAND} to check for sudo password requirement: {exc}"
        ) from exc
    finally:
        session.close()
    return False


def sudo_option(nonce: str | None) -> str:
    """sudo flag for the password mode: a custom prompt, or never prompt."""
    if nonce is None:
        return '-n'
    return f"-p {quote_arg(nonce)}"


def build_command_line(command: Sequence[str], nonce: str | None = None) -> str:
    """Build the remote command line running ``command`` under sudo.

    Each argument is quoted and the joined result is quoted once more so the
    inner shell receives a single script. The quoted ``echo READY;`` fragment
    sits directly against it, making one ``-c`` argument.
    """
    script = quote_arg(f"echo {READY_FLAG};") + quote_arg(join_args(command))
    return f"sudo -S {sudo_option(nonce)} /bin/sh -c {script}"


def _validate_command(command: Sequence[str]) -> list[str]:
    if isinstance(command, (str, bytes)):
        raise TypeError("command must be a sequence of arguments, not a single string")
    args = list(command)
    if not args:
        raise ValueError("command must not be empty")
    return args


def sudo_run(
    client: paramiko.SSHClient,
    password_callback: PasswordCallback,
    command: Sequence[str],
    *,
    timeout: float | None = None,
) -> SudoProcess:
    """Run ``command`` with sudo over ``client`` and return the live process.

    ``password_callback`` is called once, and only if sudo asks for a
    password. Every argument is quoted, so nothing in ``command`` is
    word-split or expanded; wrap it in ``sh -c`` or ``eval`` if that is
    wanted.

    ``timeout`` is applied to the channel and bounds each blocking read and
    write; without it a wrong password blocks until the remote side gives up.

    Raises a SudoError subclass on any failure, after closing the session.
    """
    args = _validate_command(command)
    needs_password = check_sudo_needs_password(client, timeout=timeout)

    try:
        session = transport.open_session(client, timeout=timeout)
    except TransportError as exc:
        raise TransportError(f"could not start an ssh session: {exc}") from exc

    stdin = None
    try:
        try:
            stdin = session.stdin_pipe()
            stdout = session.stdout_pipe()
            stderr = session.stderr_pipe()
        except transport.STREAM_ERRORS as exc:
            raise TransportError(f"could not open session pipes: {exc}") from exc

        nonce = str(uuid.uuid4()) if needs_password else None
        command_line = build_command_line(args, nonce)
        logger.debug(f"Starting remote command: {command_line}")
        try:
            session.start(command_line)
        except transport.STREAM_ERRORS as exc:
            raise TransportError(f"failed to start session: {exc}") from exc

        if nonce is not None:
            _send_password(stdin, stderr, nonce, password_callback)

        try:
            ready = expect_only(stdout, f"{READY_FLAG}\n".encode())
        except ExpectReadError as exc:
            raise ExpectReadError(f"error while expecting {READY_FLAG} flag: {exc}") from exc
        if not ready:
            raise NoReadyFlagError()
    except BaseException:
        _teardown(session, stdin)
        raise

    logger.info(f"sudo handshake complete for {args[0]!r}")
    return SudoProcess(stdin, stdout, stderr, session, command_line)


def _send_password(stdin: BinaryIO, stderr: BinaryIO, nonce: str, password_callback: PasswordCallback) -> None:
    try:
        prompted = expect_only(stderr, nonce.encode())
    except ExpectReadError as exc:
        raise ExpectReadError(f"error while expecting sudo prompt: {exc}") from exc
    if not prompted:
        raise NoSudoPromptError()

    try:
        password = password_callback()
    except Exception as exc:
        raise PasswordCallbackError() from exc
    if not isinstance(password, str):
        raise PasswordCallbackError(f"password callback returned {type(password).__name__}, not str")

    logger.debug("sudo prompt seen; sending password")
    try:
        stdin.write(f"{password}\n".encode())
        stdin.flush()
    except transport.STREAM_ERRORS as exc:
        raise StreamWriteError(f"could not write sudo password: {exc}") from exc


def _teardown(session: transport.RemoteSession, stdin: BinaryIO | None) -> None:
    logger.debug("sudo handshake failed; closing session")
    try:
        if stdin is not None:
            stdin.close()
    except transport.STREAM_ERRORS as exc:
        logger.debug(f"ignoring error closing stdin during teardown: {exc}")
    finally:
        session.close()


def sudo_shell(
    client: paramiko.SSHClient,
    password_callback: PasswordCallback,
    *,
    timeout: float | None = None,
) -> SudoProcess:
    """Start a root ``sh`` reading its script from stdin."""
    return sudo_run(client, password_callback, SHELL_COMMAND, timeout=timeout)
