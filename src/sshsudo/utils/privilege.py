"""Privilege helper utilities.

Convenience wrappers over sudo_run for callers that want subprocess-style
results instead of live streams.

- `run_command(...)` runs a command to completion and returns a
  subprocess.CompletedProcess, like subprocess.run with capture_output=True.
- `render_command(...)` shows the exact remote command line for logging or
  dry-run output.
"""
from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence

import paramiko

from ..password import PasswordCallback
from ..sudo import build_command_line, sudo_run

logger = logging.getLogger(__name__)

# Stands in for the random prompt when rendering; the real nonce is only
# known once the handshake runs.
NONCE_PLACEHOLDER = '<nonce>'


def render_command(cmd: Sequence[str], password_required: bool = False) -> str:
    """Return the remote command line that sudo_run would start for ``cmd``."""
    return build_command_line(list(cmd), NONCE_PLACEHOLDER if password_required else None)


def run_command(
    client: paramiko.SSHClient,
    cmd: Sequence[str],
    password_callback: PasswordCallback,
    input: bytes | None = None,
    check: bool = False,
    timeout: float | None = None,
) -> subprocess.CompletedProcess:
    """Run ``cmd`` as root on the remote host and wait for it to finish.

    ``input`` is written to the command's stdin, which is then closed. stdout
    and stderr are captured as bytes.

    Returns the CompletedProcess.
    Raises subprocess.CalledProcessError if check=True and the command exits
    non-zero, and a SudoError subclass if the sudo handshake fails.
    """
    cmd_list = list(cmd)
    with sudo_run(client, password_callback, cmd_list, timeout=timeout) as proc:
        stdout, stderr = proc.communicate(input)
        returncode = proc.wait()

    logger.debug(f"{cmd_list[0]!r} exited with {returncode}")
    if check and returncode != 0:
        raise subprocess.CalledProcessError(returncode, cmd_list, output=stdout, stderr=stderr)
    return subprocess.CompletedProcess(cmd_list, returncode, stdout=stdout, stderr=stderr)
