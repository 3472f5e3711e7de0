"""sshsudo: run commands through sudo on remote hosts over SSH.

The handshake lives in :mod:`sshsudo.sudo`; password sources in
:mod:`sshsudo.password`.
"""
from .errors import (
    ExpectReadError,
    NoReadyFlagError,
    NoSudoPromptError,
    PasswordCallbackError,
    PolicyCheckError,
    ProtocolExpectationError,
    RemoteExitError,
    StreamIOError,
    StreamWriteError,
    SudoError,
    TransportError,
)
from .password import PasswordCallback, static_password_callback
from .sudo import SudoProcess, check_sudo_needs_password, sudo_run, sudo_shell

__all__ = [
    'SudoError',
    'TransportError',
    'RemoteExitError',
    'PolicyCheckError',
    'ProtocolExpectationError',
    'NoSudoPromptError',
    'NoReadyFlagError',
    'StreamIOError',
    'ExpectReadError',
    'StreamWriteError',
    'PasswordCallbackError',
    'PasswordCallback',
    'static_password_callback',
    'SudoProcess',
    'check_sudo_needs_password',
    'sudo_run',
    'sudo_shell',
]
