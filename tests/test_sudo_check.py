import paramiko
import pytest

from sshsudo.errors import PolicyCheckError, TransportError
from sshsudo.sudo import SUDO_CHECK_COMMAND, check_sudo_needs_password


def test_no_password_when_check_succeeds(fake_client, fake_channel):
    chan = fake_channel(exit_status=0)
    client = fake_client(chan)

    assert check_sudo_needs_password(client) is False
    assert chan.commands == [SUDO_CHECK_COMMAND]
    assert chan.closed


def test_password_required_on_nonzero_exit(fake_client, fake_channel):
    chan = fake_channel(exit_status=1, stderr=b"sudo: a password is required\n")
    client = fake_client(chan)

    assert check_sudo_needs_password(client) is True
    assert chan.closed


def test_exec_failure_is_policy_check_error(fake_client, fake_channel):
    chan = fake_channel(exec_error=paramiko.SSHException("channel closed"))
    client = fake_client(chan)

    with pytest.raises(PolicyCheckError) as exc_info:
        check_sudo_needs_password(client)
    assert "sudo -n -v" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, TransportError)
    assert chan.closed


def test_missing_exit_status_is_policy_check_error(fake_client, fake_channel):
    chan = fake_channel(exit_status=-1)

    with pytest.raises(PolicyCheckError):
        check_sudo_needs_password(fake_client(chan))


def test_inactive_transport_is_policy_check_error(fake_client):
    client = fake_client()
    client.transport.active = False

    with pytest.raises(PolicyCheckError):
        check_sudo_needs_password(client)


def test_timeout_applied_to_probe_channel(fake_client, fake_channel):
    chan = fake_channel(exit_status=0)
    check_sudo_needs_password(fake_client(chan), timeout=5.0)
    assert chan.timeout == 5.0
