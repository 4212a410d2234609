import math

import pytest

from purple_reaction.engine.errors import ConfigurationError, ExitCode
from purple_reaction.engine.models import MAX_TRIAL_COUNT, RunParameters, RunResult, TrialRecord


def test_trial_record_requires_exactly_one_outcome():
    with pytest.raises(ValueError):
        TrialRecord(1, 1.0, reaction_ms=200.0, false_start=True)
    with pytest.raises(ValueError):
        TrialRecord(1, 1.0, reaction_ms=None, false_start=False)
    with pytest.raises(ValueError):
        TrialRecord.valid(0, 1.0, 200.0)


def test_trial_record_dict_layout():
    assert TrialRecord.valid(1, 2.5, 231.25).to_dict() == {
        'trial': 1, 'random_delay_seconds': 2.5, 'reaction_ms': 231.25, 'false_start': False,
    }
    assert TrialRecord.false_started(2, 3.0).to_dict() == {
        'trial': 2, 'random_delay_seconds': 3.0, 'reaction_ms': None, 'false_start': True,
    }


def test_run_result_rejects_inconsistent_counts():
    trials = (TrialRecord.valid(1, 1.0, 200.0), TrialRecord.false_started(2, 1.0))
    RunResult(2, 1, 1, 200.0, trials)
    with pytest.raises(ValueError):
        RunResult(2, 2, 0, 200.0, trials)
    with pytest.raises(ValueError):
        RunResult(2, 1, 1, None, trials)
    with pytest.raises(ValueError):
        RunResult(2, 1, 1, 200.0, tuple(reversed(trials)))


def test_run_result_from_dict_rejects_malformed_records():
    with pytest.raises(ValueError):
        RunResult.from_dict([])
    with pytest.raises(ValueError):
        RunResult.from_dict({'trial_count': 1})
    with pytest.raises(ValueError):
        RunResult.from_dict({'trial_count': 1, 'valid_count': 1, 'false_start_count': 0,
                             'average_reaction_ms': None, 'trials': [
                                 {'trial': 1, 'random_delay_seconds': 1.0, 'reaction_ms': 180.0,
                                  'false_start': False}]})


def test_run_result_checks_valid_count_and_average():
    trials = (TrialRecord.valid(1, 1.0, 200.0), TrialRecord.valid(2, 1.0, 300.0), TrialRecord.false_started(3, 1.0))
    RunResult(3, 2, 1, 250.0, trials)
    with pytest.raises(ValueError, match="valid_count"):
        RunResult(3, 1, 2, 250.0, trials)
    with pytest.raises(ValueError):
        RunResult(3, 2, 1, 200.0, trials)


def test_trial_entries_must_be_objects_with_boolean_flag():
    entry = {'trial': 1, 'random_delay_seconds': 1.0, 'reaction_ms': 180.0, 'false_start': False}
    record = {'trial_count': 1, 'valid_count': 1, 'false_start_count': 0, 'average_reaction_ms': 180.0}
    RunResult.from_dict(dict(record, trials=[entry]))
    with pytest.raises(ValueError):
        RunResult.from_dict(dict(record, trials=[1]))
    with pytest.raises(ValueError):
        RunResult.from_dict(dict(record, trials=[dict(entry, false_start="false")]))
    with pytest.raises(ValueError):
        TrialRecord.from_dict(dict(entry, false_start=0))


def test_run_result_from_dict_reads_output_record():
    data = {
        'trial_count': 2, 'valid_count': 1, 'false_start_count': 1, 'average_reaction_ms': 180.0,
        'trials': [
            {'trial': 1, 'random_delay_seconds': 1.0, 'reaction_ms': 180.0, 'false_start': False},
            {'trial': 2, 'random_delay_seconds': 1.2, 'reaction_ms': None, 'false_start': True},
        ],
    }
    result = RunResult.from_dict(data)
    assert result.trials[1].false_start
    assert result.to_dict() == data


def test_valid_parameters_pass():
    params = RunParameters(min_delay=2.0, max_delay=5.0, trial_count=10)
    assert params.validate() is params
    RunParameters(min_delay=0.1, max_delay=0.2, trial_count=MAX_TRIAL_COUNT).validate()


@pytest.mark.parametrize("kwargs", [
    dict(min_delay=0.0, max_delay=5.0, trial_count=10),
    dict(min_delay=-1.0, max_delay=5.0, trial_count=10),
    dict(min_delay=2.0, max_delay=0.0, trial_count=10),
    dict(min_delay=5.0, max_delay=5.0, trial_count=10),
    dict(min_delay=6.0, max_delay=5.0, trial_count=10),
    dict(min_delay=2.0, max_delay=5.0, trial_count=0),
    dict(min_delay=2.0, max_delay=5.0, trial_count=-3),
    dict(min_delay=2.0, max_delay=5.0, trial_count=MAX_TRIAL_COUNT + 1),
    dict(min_delay=2.0, max_delay=5.0, trial_count=2.5),
    dict(min_delay=math.nan, max_delay=5.0, trial_count=10),
    dict(min_delay=2.0, max_delay=math.inf, trial_count=10),
    dict(min_delay=2.0, max_delay=5.0, trial_count=10, false_start_grace_ms=-1.0),
    dict(min_delay=2.0, max_delay=5.0, trial_count=10, seed=-1),
    dict(min_delay=2.0, max_delay=5.0, trial_count=10, seed=True),
    dict(min_delay=2.0, max_delay=5.0, trial_count=10, seed=1.5),
])
def test_invalid_parameters_raise_configuration_error(kwargs):
    with pytest.raises(ConfigurationError) as excinfo:
        RunParameters(**kwargs).validate()
    assert excinfo.value.exit_code == ExitCode.CONFIG_ERROR
    assert isinstance(excinfo.value, ValueError)


def test_validation_reports_every_problem():
    with pytest.raises(ConfigurationError) as excinfo:
        RunParameters(min_delay=-1.0, max_delay=-2.0, trial_count=0).validate()
    message = str(excinfo.value)
    assert "min delay must be > 0" in message
    assert "max delay must be > 0" in message
    assert "trial count must be > 0" in message
