import pytest
import yaml
from click.testing import CliRunner

from podsmith.CLI.main import cli


@pytest.fixture
def fake_rkt(monkeypatch, make_executor):
    executor = make_executor()
    monkeypatch.setattr("podsmith.REGISTRY.rkt_client.CommandExecutor", lambda: executor)
    return executor


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yml"
    with open(path, 'w') as f:
        yaml.dump({"rkt": {"path": "/usr/bin/rkt"}}, f)
    return str(path)


def write_pod(directory, apps):
    directory.mkdir()
    with open(directory / "pod-manifest.yml", 'w') as f:
        yaml.dump({"name": "acme:1.0.0", "pod": {"apps": apps}}, f)
    return str(directory)


def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'build and test ACIs' in result.output


def test_cli_build_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['build', '--help'])
    assert result.exit_code == 0
    assert '--keep-builder' in result.output


def test_cli_rkt_version(fake_rkt, config_file):
    runner = CliRunner()
    result = runner.invoke(cli, ['-c', config_file, 'rkt-version'])
    assert result.exit_code == 0
    assert 'rkt 1.30.0 (/usr/bin/rkt)' in result.output
    assert fake_rkt.calls == [["/usr/bin/rkt", "version"]]


def test_cli_unsupported_rkt(monkeypatch, config_file, make_executor):
    executor = make_executor(version="1.2.0")
    monkeypatch.setattr("podsmith.REGISTRY.rkt_client.CommandExecutor", lambda: executor)
    runner = CliRunner()
    result = runner.invoke(cli, ['-c', config_file, 'rkt-version'])
    assert result.exit_code == 1
    assert 'Unsupported version of rkt' in result.output


def test_cli_invalid_pull_policy(config_file):
    runner = CliRunner()
    result = runner.invoke(cli, ['-c', config_file, '--pull-policy', 'always', 'rkt-version'])
    assert result.exit_code == 2


def test_cli_clean_pod(fake_rkt, config_file, tmp_path):
    pod_dir = write_pod(tmp_path / "pod", [{"dependencies": ["example.com/foo"]}])
    (tmp_path / "pod" / "target" / "foo").mkdir(parents=True)
    runner = CliRunner()
    result = runner.invoke(cli, ['-c', config_file, 'clean', pod_dir])
    assert result.exit_code == 0, result.output
    assert not (tmp_path / "pod" / "target").exists()


def test_cli_duplicate_apps(fake_rkt, config_file, tmp_path):
    pod_dir = write_pod(tmp_path / "pod", [
        {"dependencies": ["example.com/foo"]},
        {"dependencies": ["other.org/foo"]},
    ])
    runner = CliRunner()
    result = runner.invoke(cli, ['-c', config_file, 'test', pod_dir])
    assert result.exit_code == 1
    assert 'Duplicate app name' in result.output


def test_cli_aci_without_manifest(fake_rkt, config_file, tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ['-c', config_file, 'build', str(tmp_path)])
    assert result.exit_code == 1
    assert 'Failed to read manifest' in result.output
