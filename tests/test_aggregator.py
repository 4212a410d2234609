import pytest

from purple_reaction.engine.aggregator import ResultAggregator
from purple_reaction.engine.models import TrialRecord


def test_summary_counts_and_average():
    aggregator = ResultAggregator()
    aggregator.add(TrialRecord.valid(1, 1.0, 200.0))
    aggregator.add(TrialRecord.false_started(2, 1.1))
    aggregator.add(TrialRecord.valid(3, 1.2, 150.0))

    summary = aggregator.summarize()
    assert summary.trial_count == 3
    assert summary.valid_count == 2
    assert summary.false_start_count == 1
    assert summary.average_reaction_ms == pytest.approx(175.0)


def test_average_absent_without_valid_trials():
    aggregator = ResultAggregator()
    assert aggregator.summarize().average_reaction_ms is None
    aggregator.add(TrialRecord.false_started(1, 1.0))
    aggregator.add(TrialRecord.false_started(2, 1.0))
    result = aggregator.finalize()
    assert result.valid_count == 0
    assert result.false_start_count == 2
    assert result.average_reaction_ms is None


def test_summarize_is_idempotent():
    aggregator = ResultAggregator()
    aggregator.add(TrialRecord.valid(1, 1.0, 312.5))
    assert aggregator.summarize() == aggregator.summarize()
    assert aggregator.finalize() == aggregator.finalize()


def test_records_must_arrive_in_order():
    aggregator = ResultAggregator()
    aggregator.add(TrialRecord.valid(1, 1.0, 200.0))
    with pytest.raises(ValueError):
        aggregator.add(TrialRecord.valid(3, 1.0, 200.0))
    assert len(aggregator) == 1


def test_records_returns_copy():
    aggregator = ResultAggregator()
    aggregator.add(TrialRecord.valid(1, 1.0, 200.0))
    aggregator.records.clear()
    assert len(aggregator) == 1
