import io
import re
import sys
from pathlib import Path

import pytest

# Ensure `src` is on sys.path for tests run from the repository root
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class FakeStdin:
    """Stands in for paramiko's ChannelStdinFile; records what was written."""

    def __init__(self, fail_writes=False):
        self.data = b""
        self.closed = False
        self.fail_writes = fail_writes

    def write(self, data):
        if self.closed:
            raise OSError("File is closed")
        if self.fail_writes:
            raise OSError("channel closed")
        self.data += data
        return len(data)

    def flush(self):
        pass

    def close(self):
        self.closed = True


class FakeChannel:
    """Minimal paramiko.Channel double.

    ``stdout``/``stderr`` are bytes, or callables taking the executed command
    and returning bytes, so output can depend on the generated sudo prompt.
    """

    def __init__(self, stdout=b"", stderr=b"", exit_status=0, exec_error=None, fail_writes=False):
        self._stdout = stdout
        self._stderr = stderr
        self.exit_status = exit_status
        self.exec_error = exec_error
        self.stdout = io.BytesIO()
        self.stderr = io.BytesIO()
        self.stdin = FakeStdin(fail_writes=fail_writes)
        self.commands = []
        self.timeout = None
        self.closed = False

    def settimeout(self, timeout):
        self.timeout = timeout

    def exec_command(self, command):
        if self.exec_error is not None:
            raise self.exec_error
        self.commands.append(command)
        out = self._stdout(command) if callable(self._stdout) else self._stdout
        err = self._stderr(command) if callable(self._stderr) else self._stderr
        self.stdout = io.BytesIO(out)
        self.stderr = io.BytesIO(err)

    def makefile(self, *params):
        return _Lazy(self, "stdout")

    def makefile_stderr(self, *params):
        return _Lazy(self, "stderr")

    def makefile_stdin(self, *params):
        return self.stdin

    def recv_exit_status(self):
        return self.exit_status

    def close(self):
        self.closed = True


class _Lazy:
    """Reads from whichever buffer the channel holds once the command starts."""

    def __init__(self, channel, name):
        self.channel = channel
        self.name = name

    def read(self, size=-1):
        return getattr(self.channel, self.name).read(size)

    def readline(self):
        return getattr(self.channel, self.name).readline()


class FakeTransport:
    def __init__(self, channels):
        self.channels = list(channels)
        self.opened = []
        self.active = True

    def is_active(self):
        return self.active

    def open_session(self, *args, **kwargs):
        chan = self.channels.pop(0)
        self.opened.append(chan)
        return chan


class FakeClient:
    def __init__(self, *channels):
        self.transport = FakeTransport(channels)
        self.closed = False

    def get_transport(self):
        return self.transport

    def close(self):
        self.closed = True


def prompt_from_command(command):
    """Return the ``-p`` prompt sudo would print for ``command``."""
    m = re.search(r"-p (\S+) ", command)
    return m.group(1).strip("'").encode() if m else b""


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture
def fake_channel():
    return FakeChannel


@pytest.fixture
def sudo_prompt():
    return prompt_from_command
