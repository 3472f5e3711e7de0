"""Exception types raised by sshsudo.

Every failure during the sudo handshake is raised as a subclass of
SudoError. The original cause, when there is one, is kept on
``__cause__`` so callers can inspect it.
"""


class SudoError(Exception):
    """Base exception for all sshsudo failures."""


class TransportError(SudoError):
    """Opening a session, acquiring a pipe, or starting a command failed."""


class RemoteExitError(TransportError):
    """A remote command exited with a non-zero status."""

    def __init__(self, command: str, exit_status: int):
        self.command = command
        self.exit_status = exit_status
        super().__init__(f"Command {command!r} exited with status {exit_status}")


class PolicyCheckError(SudoError):
    """The sudo password check itself could not be run."""


class ProtocolExpectationError(SudoError):
    """The remote side did not produce the bytes the handshake waits for."""


class NoSudoPromptError(ProtocolExpectationError):
    def __init__(self, message: str = "no sudo prompt found when expected"):
        super().__init__(message)


class NoReadyFlagError(ProtocolExpectationError):
    def __init__(self, message: str = "no READY flag found when expected"):
        super().__init__(message)


class StreamIOError(SudoError):
    """Reading from or writing to a session stream failed."""


class ExpectReadError(StreamIOError):
    pass


class StreamWriteError(StreamIOError):
    pass


class PasswordCallbackError(SudoError):
    """The password callback raised; the underlying error is ``__cause__``."""

    def __init__(self, message: str = "password callback returned an error"):
        super().__init__(message)
