from __future__ import annotations

import sys
import threading
from typing import Any, BinaryIO, Optional

import click

from sshsudo import transport
from sshsudo.errors import StreamIOError, SudoError


def _fail(exc: SudoError) -> None:
    message = str(exc)
    if exc.__cause__ is not None and str(exc.__cause__) not in message:
        message = f"{message}: {exc.__cause__}"
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def connection_options(f):
    """Attach the HOST argument and connection options shared by remote commands."""
    f = click.option('--timeout', type=float, default=None, help='Timeout in seconds for each read and write during the sudo handshake')(f)
    f = click.option('--ask-ssh-pass', is_flag=True, help='Prompt for the SSH login password')(f)
    f = click.option('--identity', '-i', default=None, help='Private key file')(f)
    f = click.option('--user', '-u', default=None, help='Remote login user')(f)
    f = click.option('--port', '-p', type=int, default=None, help='SSH port')(f)
    f = click.argument('host', type=str)(f)
    return f


def _settings(host: str, port: Optional[int], user: Optional[str], identity: Optional[str], timeout: Optional[float]) -> dict[str, Any]:
    from sshsudo.config import get_connection_settings

    settings = get_connection_settings(host)
    # command-line flags win over config and environment
    for key, value in (('port', port), ('username', user), ('identity_file', identity), ('timeout', timeout)):
        if value is not None:
            settings[key] = value
    return settings


def _connect(host: str, settings: dict[str, Any], ask_ssh_pass: bool):
    ssh_password = None
    if ask_ssh_pass:
        ssh_password = click.prompt(f'SSH password for {host}', hide_input=True, err=True)
    return transport.connect(
        host,
        port=settings['port'],
        username=settings['username'],
        key_filename=settings['identity_file'],
        password=ssh_password,
        connect_timeout=settings['connect_timeout'],
        strict_host_keys=settings['strict_host_keys'],
    )


def _password_callback(password_env: Optional[str], settings: dict[str, Any]):
    from sshsudo.password import env_password_callback, prompt_password_callback

    var = password_env or settings.get('password_env')
    if var:
        return env_password_callback(var)
    return prompt_password_callback()


def _pump(src: BinaryIO, dst: BinaryIO, errors: list) -> None:
    # relays whole lines; a partial line shows up once its newline arrives
    try:
        for chunk in iter(src.readline, b''):
            dst.write(chunk)
            dst.flush()
    except transport.STREAM_ERRORS as exc:
        errors.append(exc)


def _relay(proc, forward_stdin: bool) -> int:
    """Copy remote output to local stdout/stderr until EOF, then wait for exit.

    The channel timeout only bounds the handshake; it is cleared here so a
    command that stays quiet for a while is not cut off.
    """
    proc.session.settimeout(None)
    errors: list = []
    pumps = [
        threading.Thread(target=_pump, args=(proc.stdout, click.get_binary_stream('stdout'), errors), daemon=True),
        threading.Thread(target=_pump, args=(proc.stderr, click.get_binary_stream('stderr'), errors), daemon=True),
    ]
    for t in pumps:
        t.start()
    try:
        if forward_stdin:
            _pump(click.get_binary_stream('stdin'), proc.stdin, errors)
    finally:
        proc.stdin.close()
    for t in pumps:
        t.join()
    if errors:
        raise StreamIOError(f"lost remote output: {errors[0]}") from errors[0]
    return proc.wait()


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.option('--trace', is_flag=True, help='Log every byte read during the sudo handshake')
@click.pass_context
def cli(ctx, verbose: bool, quiet: bool, trace: bool):
    """sshsudo: run commands as root on remote hosts over SSH."""
    from sshsudo.utils.logging_config import setup_cli_logging

    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet

    setup_cli_logging(verbose=verbose, quiet=quiet, trace=trace)


@cli.command('check')
@connection_options
def check_cmd(host: str, port: Optional[int], user: Optional[str], identity: Optional[str], ask_ssh_pass: bool, timeout: Optional[float]):
    """Report whether sudo on HOST needs a password."""
    from sshsudo.sudo import check_sudo_needs_password

    settings = _settings(host, port, user, identity, timeout)
    try:
        client = _connect(host, settings, ask_ssh_pass)
        try:
            needs_password = check_sudo_needs_password(client, timeout=settings['timeout'])
        finally:
            client.close()
    except SudoError as e:
        _fail(e)
        return

    if needs_password:
        click.echo(f"{host}: {click.style('password required', fg='yellow')}")
    else:
        click.echo(f"{host}: {click.style('no password required', fg='green')}")


@cli.command('run', context_settings={'ignore_unknown_options': True})
@connection_options
@click.option('--password-env', default=None, help='Read the sudo password from this environment variable')
@click.option('--stdin', 'forward_stdin', is_flag=True, help='Forward local stdin to the remote command')
@click.option('--dry-run', is_flag=True, help='Print the remote command line without connecting')
@click.argument('command', nargs=-1, required=True, type=click.UNPROCESSED)
def run_cmd(host: str, port: Optional[int], user: Optional[str], identity: Optional[str], ask_ssh_pass: bool,
            timeout: Optional[float], password_env: Optional[str], forward_stdin: bool, dry_run: bool, command: tuple):
    """Run COMMAND as root on HOST; exits with the remote exit status.

    Arguments are passed through verbatim: nothing is split or expanded on
    the remote side. Use `--` before COMMAND if it has options of its own.
    """
    from sshsudo.sudo import sudo_run
    from sshsudo.utils.privilege import render_command

    if dry_run:
        click.echo(render_command(command, password_required=True))
        return

    settings = _settings(host, port, user, identity, timeout)
    try:
        client = _connect(host, settings, ask_ssh_pass)
        try:
            proc = sudo_run(client, _password_callback(password_env, settings), command, timeout=settings['timeout'])
            with proc:
                status = _relay(proc, forward_stdin)
        finally:
            client.close()
    except SudoError as e:
        _fail(e)
        return

    sys.exit(status if status >= 0 else 255)


@cli.command('shell')
@connection_options
@click.option('--password-env', default=None, help='Read the sudo password from this environment variable')
def shell_cmd(host: str, port: Optional[int], user: Optional[str], identity: Optional[str], ask_ssh_pass: bool,
              timeout: Optional[float], password_env: Optional[str]):
    """Run a root `sh` on HOST with local stdin as its script."""
    from sshsudo.sudo import sudo_shell

    settings = _settings(host, port, user, identity, timeout)
    try:
        client = _connect(host, settings, ask_ssh_pass)
        try:
            proc = sudo_shell(client, _password_callback(password_env, settings), timeout=settings['timeout'])
            with proc:
                status = _relay(proc, forward_stdin=True)
        finally:
            client.close()
    except SudoError as e:
        _fail(e)
        return

    sys.exit(status if status >= 0 else 255)


@cli.group('config')
def config_group():
    """Manage persistent connection defaults (XDG config)."""
    pass


@config_group.command('set')
@click.argument('key', type=str)
@click.argument('value', type=str)
@click.option('--host', default=None, help='Store the value for this host only')
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
def config_set(key: str, value: str, host: Optional[str], yes: bool):
    """Set a config key (see `config show` for the supported keys)."""
    from sshsudo.config import set_config_value, get_allowed_keys, _config_file_path

    allowed = get_allowed_keys()
    if key not in allowed:
        click.echo(f'Unsupported config key: {key}')
        return

    target = f'{key} for {host}' if host else key
    if not yes:
        click.echo(f'About to set {target} in {_config_file_path()} to {value}')
        if not click.confirm('Proceed?'):
            click.echo('Aborted.')
            return

    if set_config_value(key, value, host=host):
        click.echo(f'Set {target} = {value}')
    else:
        click.echo('Failed to set config (validation or IO error)')


@config_group.command('show')
@click.option('--host', default=None, help='Show the values that apply to this host')
def config_show(host: Optional[str]):
    """Show the effective value of every key and where it comes from."""
    from sshsudo.config import get_allowed_keys, get_effective_value

    for key in get_allowed_keys():
        eff = get_effective_value(key, host)
        if eff['env'] is not None:
            source = 'env'
        elif eff['host'] is not None:
            source = 'host'
        elif eff['config'] is not None:
            source = 'config'
        else:
            source = 'default'
        click.echo(f"{key} = {eff['effective']} ({source})")


def main():
    cli()
