from __future__ import annotations

import random

import pytest

from richard.liveness import (
    ERROR_RATE_WINDOW,
    HIGH,
    LOW,
    MAX_FAILURES,
    LivenessMonitor,
    ProbeStatusError,
    ProbeTransportError,
    Transition,
    update_liveness,
)


def _failure() -> ProbeStatusError:
    return ProbeStatusError(500)


def test_update_liveness_goes_down_at_high_and_up_at_low() -> None:
    alive = True
    count = 0

    for _ in range(HIGH - 1):
        alive, count, transition = update_liveness(alive=alive, failure_count=count, observed_ok=False)
        assert alive is True
        assert transition is None

    # HIGH-th failure: state flips
    alive, count, transition = update_liveness(alive=alive, failure_count=count, observed_ok=False)
    assert alive is False
    assert count == HIGH
    assert transition is Transition.WENT_DOWN

    # Successes while dead: recovery exactly when the counter reaches LOW
    for _ in range(HIGH - LOW - 1):
        alive, count, transition = update_liveness(alive=alive, failure_count=count, observed_ok=True)
        assert alive is False
        assert transition is None

    alive, count, transition = update_liveness(alive=alive, failure_count=count, observed_ok=True)
    assert alive is True
    assert count == LOW
    assert transition is Transition.CAME_UP


def test_update_liveness_counter_saturates() -> None:
    alive, count, _ = update_liveness(alive=True, failure_count=0, observed_ok=True)
    assert (alive, count) == (True, 0)

    alive, count, transition = update_liveness(alive=False, failure_count=MAX_FAILURES, observed_ok=False)
    assert (alive, count, transition) == (False, MAX_FAILURES, None)


def test_monitor_scenario_success_fail_recover() -> None:
    monitor = LivenessMonitor(name="api")
    outcomes = [True, True] + [False] * 6 + [True] * 3
    transitions = []
    for ok in outcomes:
        transitions.append(monitor.record_liveness(None if ok else _failure()))

    assert transitions[7] is Transition.WENT_DOWN
    assert transitions[10] is Transition.CAME_UP
    assert [t for t in transitions if t is not None] == [Transition.WENT_DOWN, Transition.CAME_UP]
    assert monitor.alive is True
    assert monitor.failure_count == LOW


def test_monitor_state_matches_reference_scan() -> None:
    rng = random.Random(1234)
    for _ in range(200):
        monitor = LivenessMonitor(name="target")
        counter = 0
        last_threshold = None
        for _ in range(rng.randint(1, 80)):
            ok = rng.random() < 0.5
            monitor.record_liveness(None if ok else _failure())

            counter = max(counter - 1, 0) if ok else min(counter + 1, MAX_FAILURES)
            if counter == HIGH:
                last_threshold = "high"
            elif counter == LOW:
                last_threshold = "low"

            assert 0 <= monitor.failure_count <= MAX_FAILURES
            assert monitor.failure_count == counter
            assert monitor.alive is (last_threshold != "high")


def test_down_message_uses_last_error() -> None:
    monitor = LivenessMonitor(name="eu-west-2")
    assert monitor.down_message() == "eu-west-2 seems down (no reason found)"

    monitor.record_liveness(ProbeStatusError(502))
    assert monitor.down_message() == "eu-west-2: API is down (error code: 502)"
    assert monitor.up_message() == "eu-west-2 is up"


def test_probe_error_wording() -> None:
    assert "maintenance mode" in str(ProbeStatusError(503))
    assert str(ProbeStatusError(404)) == "API is down (error code: 404)"
    assert str(ProbeTransportError("ConnectError: refused")) == "API seems down (transport error: ConnectError: refused)"


def test_error_rate_is_invalid_until_window_is_full() -> None:
    monitor = LivenessMonitor(name="api")
    for _ in range(ERROR_RATE_WINDOW - 1):
        assert monitor.record_error_rate(True) is None
    assert monitor.record_error_rate(True) == pytest.approx(1.0)


def test_error_rate_converges() -> None:
    monitor = LivenessMonitor(name="api")
    for _ in range(ERROR_RATE_WINDOW):
        monitor.record_error_rate(True)
    rate = None
    for _ in range(ERROR_RATE_WINDOW):
        rate = monitor.record_error_rate(False)
    assert rate == pytest.approx(0.0)


def test_error_rate_is_a_true_sliding_mean() -> None:
    monitor = LivenessMonitor(name="api")
    for i in range(ERROR_RATE_WINDOW):
        monitor.record_error_rate(i % 10 == 0)
    assert monitor.error_rate == pytest.approx(0.1)

    # 20 more failures push 20 old samples (2 of them failures) out of the window
    for _ in range(20):
        rate = monitor.record_error_rate(True)
    assert rate == pytest.approx(0.28)


def test_high_error_rate_crossing_fires_once() -> None:
    monitor = LivenessMonitor(name="api")
    assert monitor.crossed_high_error_rate(0.05) is False
    assert monitor.crossed_high_error_rate(0.2) is True
    assert monitor.crossed_high_error_rate(0.3) is False
    assert monitor.crossed_high_error_rate(0.05) is False
    assert monitor.crossed_high_error_rate(0.15) is True
