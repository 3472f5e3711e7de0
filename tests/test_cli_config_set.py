from click.testing import CliRunner

from sshsudo.cli.commands import cli
from sshsudo.config import load_config


def test_config_set_writes_file(tmp_path, monkeypatch):
    monkeypatch.setenv('XDG_CONFIG_HOME', str(tmp_path))

    runner = CliRunner()
    result = runner.invoke(cli, ['config', 'set', 'port', '2022', '--yes'])
    assert result.exit_code == 0

    cfg = load_config()
    assert cfg.get('port') == 2022


def test_config_set_rejects_unknown_key(tmp_path, monkeypatch):
    monkeypatch.setenv('XDG_CONFIG_HOME', str(tmp_path))

    result = CliRunner().invoke(cli, ['config', 'set', 'sudo_password', 'x', '--yes'])
    assert 'Unsupported config key' in result.output
    assert load_config() == {}


def test_config_set_aborts_without_confirmation(tmp_path, monkeypatch):
    monkeypatch.setenv('XDG_CONFIG_HOME', str(tmp_path))

    result = CliRunner().invoke(cli, ['config', 'set', 'port', '2022'], input='n\n')
    assert 'Aborted.' in result.output
    assert load_config() == {}


def test_config_show_reports_sources(tmp_path, monkeypatch):
    monkeypatch.setenv('XDG_CONFIG_HOME', str(tmp_path))
    monkeypatch.delenv('SSHSUDO_PORT', raising=False)
    monkeypatch.setenv('SSHSUDO_USERNAME', 'deploy')
    CliRunner().invoke(cli, ['config', 'set', 'port', '2022', '--yes'])

    result = CliRunner().invoke(cli, ['config', 'show'])
    assert result.exit_code == 0
    assert 'port = 2022 (config)' in result.output
    assert 'username = deploy (env)' in result.output
