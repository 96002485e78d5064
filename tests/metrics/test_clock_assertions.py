from __future__ import annotations

import pytest

from ptp_leap.errors import MetricAssertionError, MetricsError
from ptp_leap.metrics.assertions import ClockState, ClockStateQuery, assert_query
from ptp_leap.metrics.querier import Sample


class _FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


class _ScriptedAPI:
    """Returns one scripted result per query; the last one repeats."""

    def __init__(self, results):
        self.results = list(results)
        self.queries = []

    def query(self, promql):
        self.queries.append(promql)
        item = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(item, Exception):
            raise item
        return [Sample(labels={"process": "ptp4l"}, value=v) for v in item]


def test_clock_state_query_renders_label_matchers():
    assert ClockStateQuery().promql() == "openshift_ptp_clock_state"
    assert (
        ClockStateQuery(node="worker-0", process="phc2sys").promql()
        == 'openshift_ptp_clock_state{node="worker-0",process="phc2sys"}'
    )


def test_locked_state_must_hold_for_stable_duration():
    clock = _FakeClock()
    api = _ScriptedAPI([[0.0], [1.0, 1.0]])

    assert_query(
        api,
        ClockStateQuery(),
        ClockState.LOCKED,
        stable_duration=10,
        timeout=60,
        poll_interval=5,
        clock=clock,
        sleep=clock.sleep,
    )

    # freerun at t=0, locked from t=5, stable once t=15
    assert clock.now == 15
    assert len(api.queries) == 4


def test_flapping_state_resets_window_and_times_out():
    clock = _FakeClock()
    api = _ScriptedAPI([[1.0], [2.0]] * 20)

    with pytest.raises(MetricAssertionError, match="did not hold 1"):
        assert_query(
            api,
            ClockStateQuery(),
            ClockState.LOCKED,
            stable_duration=10,
            timeout=30,
            poll_interval=5,
            clock=clock,
            sleep=clock.sleep,
        )


def test_empty_results_and_query_errors_do_not_count_as_locked():
    clock = _FakeClock()
    api = _ScriptedAPI([[], MetricsError("503"), [1.0]])

    assert_query(
        api,
        ClockStateQuery(),
        ClockState.LOCKED,
        stable_duration=0,
        timeout=60,
        poll_interval=5,
        clock=clock,
        sleep=clock.sleep,
    )
    assert clock.now == 10
