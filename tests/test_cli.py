import json

import pytest

from purple_reaction.cli import build_run_parameters, create_parser, main
from purple_reaction.core.config import ConfigManager
from purple_reaction.engine.errors import ExitCode


@pytest.fixture
def log_args(tmp_path_factory):
    return ['--log-file', str(tmp_path_factory.mktemp("cli-logs") / "cli.log"), '--log-level', 'WARNING']


def test_run_once_simulated_writes_record(tmp_path, log_args):
    json_out = tmp_path / "result.json"
    code = main(['--run-once', '--simulate', '--seed', '1', '--trials', '3',
                 '--min-delay', '0.5', '--max-delay', '1.5', '--json-out', str(json_out)] + log_args)
    assert code == ExitCode.OK
    data = json.loads(json_out.read_text(encoding="utf-8"))
    assert data['trial_count'] == 3
    assert len(data['trials']) == 3
    assert all(0.5 <= t['random_delay_seconds'] < 1.5 for t in data['trials'])


def test_run_once_also_writes_csv(tmp_path, log_args):
    json_out = tmp_path / "result.json"
    csv_out = tmp_path / "result.csv"
    code = main(['--run-once', '--simulate', '--trials', '2', '--min-delay', '0.1', '--max-delay', '0.2',
                 '--json-out', str(json_out), '--csv-out', str(csv_out)] + log_args)
    assert code == ExitCode.OK
    assert csv_out.read_text(encoding="utf-8").splitlines()[-1].startswith("average,")


def test_unparsable_argument_is_config_error(log_args):
    assert main(['--run-once', '--trials', 'many'] + log_args) == ExitCode.CONFIG_ERROR


@pytest.mark.parametrize("args", [
    ['--min-delay', '5', '--max-delay', '2'],
    ['--min-delay', '2', '--max-delay', '2'],
    ['--min-delay', '0', '--max-delay', '2'],
    ['--trials', '0'],
    ['--trials', '1000001'],
    ['--seed', '-1'],
])
def test_invalid_run_parameters_write_nothing(tmp_path, log_args, args):
    json_out = tmp_path / "result.json"
    code = main(['--run-once', '--simulate', '--json-out', str(json_out)] + args + log_args)
    assert code == ExitCode.CONFIG_ERROR
    assert list(tmp_path.iterdir()) == []


def test_unwritable_output_is_output_error(tmp_path, log_args):
    json_out = tmp_path / "missing" / "result.json"
    code = main(['--run-once', '--simulate', '--trials', '1', '--min-delay', '0.1', '--max-delay', '0.2',
                 '--json-out', str(json_out)] + log_args)
    assert code == ExitCode.OUTPUT_ERROR


def test_failed_record_write_removes_csv(tmp_path, log_args):
    csv_out = tmp_path / "result.csv"
    json_out = tmp_path / "missing" / "result.json"
    code = main(['--run-once', '--simulate', '--trials', '1', '--min-delay', '0.1', '--max-delay', '0.2',
                 '--json-out', str(json_out), '--csv-out', str(csv_out)] + log_args)
    assert code == ExitCode.OUTPUT_ERROR
    assert list(tmp_path.iterdir()) == []


def test_command_line_overrides_config():
    config = ConfigManager(search_default_locations=False).load_config()
    args = create_parser().parse_args(['--trials', '4', '--seed', '3'])
    params = build_run_parameters(args, config)
    assert params.trial_count == 4
    assert params.seed == 3
    assert params.min_delay == 2.0
    assert params.max_delay == 5.0
    assert params.json_out is None


def test_config_file_supplies_defaults(tmp_path, log_args):
    config_file = tmp_path / "engine.yaml"
    config_file.write_text("run:\n  trial_count: 2\n  min_delay: 0.1\n  max_delay: 0.2\n", encoding="utf-8")
    json_out = tmp_path / "result.json"
    code = main(['--run-once', '--simulate', '--config', str(config_file), '--json-out', str(json_out)] + log_args)
    assert code == ExitCode.OK
    assert json.loads(json_out.read_text(encoding="utf-8"))['trial_count'] == 2


def test_menu_mode_quits_on_end_of_input(monkeypatch, log_args):
    def no_input(prompt):
        raise EOFError

    monkeypatch.setattr('builtins.input', no_input)
    assert main(['--simulate'] + log_args) == 0
