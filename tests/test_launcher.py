import re
import sys

import pytest

from purple_reaction.engine.errors import ConfigurationError, ExitCode
from purple_reaction.engine.models import RunResult, TrialRecord
from purple_reaction.launcher import LaunchError, ReactionLauncher, format_trial_rows, main, summary_line


def python_command(code):
    return [sys.executable, '-c', code]


def test_settings_checked_before_launch(tmp_path):
    launcher = ReactionLauncher(engine_command=python_command('raise SystemExit(9)'), temp_dir=tmp_path)
    for settings in [(0.0, 1.0, 1), (2.0, 1.0, 1), (1.0, 1.0, 1), (1.0, 2.0, 0)]:
        with pytest.raises(ConfigurationError) as excinfo:
            launcher.run(*settings)
        assert str(excinfo.value) == "Settings out of range. Ensure min > 0, max > min, trials > 0."


def test_output_path_is_unique_per_run(tmp_path):
    launcher = ReactionLauncher(temp_dir=tmp_path)
    first = launcher.build_output_path()
    second = launcher.build_output_path()
    assert first != second
    assert first.parent == tmp_path
    assert re.fullmatch(r"PurpleReaction_\d{8}_\d{6}_[0-9a-f]{32}\.json", first.name)


def test_command_line_contract(tmp_path):
    launcher = ReactionLauncher(engine_command=['engine'], extra_args=['--simulate'])
    command = launcher.build_command(2.0, 5.0, 10, tmp_path / "r.json")
    assert command == ['engine', '--run-once', '--min-delay', '2.0', '--max-delay', '5.0',
                       '--trials', '10', '--json-out', str(tmp_path / "r.json"), '--simulate']


def test_runs_engine_and_reads_record(tmp_path):
    launcher = ReactionLauncher(
        engine_command=[sys.executable, '-m', 'purple_reaction'],
        temp_dir=tmp_path,
        extra_args=['--simulate', '--seed', '4', '--log-file', str(tmp_path / "engine.log")],
        timeout=60,
    )
    result = launcher.run(0.1, 0.2, 3)
    assert result.trial_count == 3
    assert not list(tmp_path.glob("*.json"))


def test_non_zero_exit_is_failure(tmp_path):
    launcher = ReactionLauncher(engine_command=python_command('raise SystemExit(3)'), temp_dir=tmp_path)
    with pytest.raises(LaunchError) as excinfo:
        launcher.run(1.0, 2.0, 1)
    assert excinfo.value.exit_code == ExitCode.ABORTED
    assert "exited with code 3" in str(excinfo.value)


def test_missing_record_is_failure(tmp_path):
    launcher = ReactionLauncher(engine_command=python_command('pass'), temp_dir=tmp_path)
    with pytest.raises(LaunchError, match="Run completed but JSON output is missing."):
        launcher.run(1.0, 2.0, 1)


def test_unparsable_record_is_failure_and_removed(tmp_path):
    code = ("import sys; p = sys.argv[sys.argv.index('--json-out') + 1]; "
            "open(p, 'w').write('{\"trial_count\": ')")
    launcher = ReactionLauncher(engine_command=python_command(code), temp_dir=tmp_path)
    with pytest.raises(LaunchError, match="Failed to parse JSON output"):
        launcher.run(1.0, 2.0, 1)
    assert list(tmp_path.iterdir()) == []


def test_missing_executable_is_failure(tmp_path):
    launcher = ReactionLauncher(engine_command=[str(tmp_path / "no-such-engine")], temp_dir=tmp_path)
    with pytest.raises(LaunchError, match="Failed to start"):
        launcher.run(1.0, 2.0, 1)


def test_summary_line():
    result = RunResult(2, 1, 1, 187.25, (TrialRecord.valid(1, 2.0, 187.25), TrialRecord.false_started(2, 3.0)))
    assert summary_line(result) == "Trials: 2, Valid: 1, False Starts: 1, Average: 187.250 ms"
    none_valid = RunResult(1, 0, 1, None, (TrialRecord.false_started(1, 3.0),))
    assert summary_line(none_valid) == "Trials: 1, Valid: 0, False Starts: 1, Average: N/A ms"
    assert len(format_trial_rows(result)) == 3


def test_main_reports_failure(capsys):
    code = main(['--engine', f'"{sys.executable}" -c "raise SystemExit(4)"', '--trials', '1',
                 '--min-delay', '0.1', '--max-delay', '0.2'])
    assert code == ExitCode.QUIT
    assert "Run failed" in capsys.readouterr().err


def test_main_maps_signal_death_to_internal_error(capsys):
    if sys.platform == "win32":
        pytest.skip("POSIX signals only")
    engine = f'"{sys.executable}" -c "import os, signal; os.kill(os.getpid(), signal.SIGTERM)"'
    code = main(['--engine', engine, '--trials', '1', '--min-delay', '0.1', '--max-delay', '0.2'])
    assert code == ExitCode.INTERNAL_ERROR
    assert "Run failed" in capsys.readouterr().err


def test_non_object_trial_entry_is_failure(tmp_path):
    record = ('{"trial_count": 1, "valid_count": 1, "false_start_count": 0, '
              '"average_reaction_ms": 1.0, "trials": [1]}')
    code = ("import sys; p = sys.argv[sys.argv.index('--json-out') + 1]; "
            f"open(p, 'w').write({record!r})")
    launcher = ReactionLauncher(engine_command=python_command(code), temp_dir=tmp_path)
    with pytest.raises(LaunchError, match="Failed to parse JSON output"):
        launcher.run(1.0, 2.0, 1)
    assert list(tmp_path.iterdir()) == []


def test_main_rejects_settings(capsys):
    assert main(['--min-delay', '3', '--max-delay', '1']) == ExitCode.CONFIG_ERROR
    assert "Settings out of range" in capsys.readouterr().err
