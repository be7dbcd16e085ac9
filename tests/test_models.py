"""Tests for the dependency-free models: deadlines, policies, records, attempts."""

import time
from datetime import UTC, datetime

import pytest

from pypatience.models import (
    Attempt,
    Classification,
    ConditionTimeoutError,
    Deadline,
    DeterministicOperationFailure,
    ExponentialBackoff,
    FailurePhase,
    FailureRecord,
    FixedBackoff,
    FlakinessSignal,
    PolicyExhaustedError,
    RetryPolicy,
    TransientOperationFailure,
    fingerprint_error,
)

# =============================================================================
# Deadline
# =============================================================================


def test_deadline_rejects_non_positive_poll_interval():
    with pytest.raises(ValueError, match="poll_interval"):
        Deadline.after(1.0, 0)


def test_deadline_rejects_non_positive_timeout():
    with pytest.raises(ValueError, match="timeout"):
        Deadline.after(0, 0.1)


def test_deadline_is_fixed_at_creation():
    deadline = Deadline.after(5.0, 0.5)
    assert deadline.timeout == pytest.approx(5.0)
    assert not deadline.expired()
    assert 0 < deadline.remaining() <= 5.0

    with pytest.raises(AttributeError):
        deadline.expires_at = deadline.expires_at + 10  # type: ignore[misc]


def test_deadline_next_sleep_never_exceeds_remaining():
    deadline = Deadline.after(0.05, 1.0)
    assert deadline.next_sleep() <= 0.05

    time.sleep(0.06)
    assert deadline.expired()
    assert deadline.remaining() == 0.0
    assert deadline.next_sleep() == 0.0


def test_deadline_next_sleep_is_poll_interval_when_time_remains():
    deadline = Deadline.after(10.0, 0.25)
    assert deadline.next_sleep() == pytest.approx(0.25)


# =============================================================================
# Backoff strategies
# =============================================================================


def test_fixed_backoff_is_constant():
    backoff = FixedBackoff(delay_ms=250)
    assert [backoff.delay_ms_for(n) for n in range(1, 5)] == [250, 250, 250, 250]


def test_exponential_backoff_grows_and_caps():
    backoff = ExponentialBackoff(initial_delay_ms=100, backoff_multiplier=2.0, max_delay_ms=500)
    assert [backoff.delay_ms_for(n) for n in range(1, 6)] == [100, 200, 400, 500, 500]


@pytest.mark.parametrize(
    "initial, multiplier, cap",
    [(1, 2.0, 60_000), (0, 2.0, 0), (250, 1.0, 250), (5, 1.5, 10)],
)
def test_exponential_backoff_stays_capped_for_huge_attempt_numbers(initial, multiplier, cap):
    backoff = ExponentialBackoff(
        initial_delay_ms=initial, backoff_multiplier=multiplier, max_delay_ms=cap
    )
    # 2.0 ** 1024 is outside the float range
    for attempt in (1025, 2000, 100_000):
        assert backoff.delay_ms_for(attempt) == (cap if multiplier > 1.0 else initial)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"initial_delay_ms": -1},
        {"backoff_multiplier": 0.5},
        {"initial_delay_ms": 1000, "max_delay_ms": 10},
    ],
)
def test_exponential_backoff_validates(kwargs):
    with pytest.raises(ValueError):
        ExponentialBackoff(**kwargs)


def test_fixed_backoff_rejects_negative_delay():
    with pytest.raises(ValueError):
        FixedBackoff(delay_ms=-5)


# =============================================================================
# RetryPolicy
# =============================================================================


def test_policy_requires_at_least_one_attempt():
    with pytest.raises(ValueError, match="max_attempts"):
        RetryPolicy(max_attempts=0)


def test_policy_defaults_retry_transient_only():
    policy = RetryPolicy(max_attempts=3)
    assert policy.retryable == frozenset({Classification.TRANSIENT})
    assert policy.allows_retry(Classification.TRANSIENT)
    assert not policy.allows_retry(Classification.UNKNOWN)
    assert not policy.allows_retry(Classification.DETERMINISTIC)


def test_policy_never_allows_deterministic_even_when_listed():
    policy = RetryPolicy(
        max_attempts=5,
        retryable={Classification.TRANSIENT, Classification.DETERMINISTIC},
    )
    assert policy.is_misconfigured
    assert not policy.allows_retry(Classification.DETERMINISTIC)


def test_policy_normalises_retryable_to_frozenset():
    policy = RetryPolicy(max_attempts=2, retryable=[Classification.UNKNOWN])
    assert isinstance(policy.retryable, frozenset)
    assert policy.allows_retry(Classification.UNKNOWN)


def test_policy_rejects_non_classification_entries():
    with pytest.raises(TypeError):
        RetryPolicy(max_attempts=2, retryable={"TRANSIENT"})


def test_policy_delay_for_attempt_stops_at_max():
    policy = RetryPolicy.STANDARD
    assert policy.delay_for_attempt(1) == 1000
    assert policy.delay_for_attempt(2) == 2000
    assert policy.delay_for_attempt(3) is None


def test_predefined_policies():
    assert RetryPolicy.NONE.max_attempts == 1
    assert RetryPolicy.NONE.delay_for_attempt(1) is None
    assert RetryPolicy.STANDARD.max_attempts == 3
    assert RetryPolicy.AGGRESSIVE.max_attempts == 10
    assert RetryPolicy.with_max_attempts(7).max_attempts == 7


def test_policy_is_immutable():
    policy = RetryPolicy.with_max_attempts(3)
    with pytest.raises(AttributeError):
        policy.max_attempts = 10  # type: ignore[misc]


def test_policy_retrying_returns_copy():
    policy = RetryPolicy.STANDARD.retrying([Classification.TRANSIENT, Classification.UNKNOWN])
    assert policy.allows_retry(Classification.UNKNOWN)
    assert not RetryPolicy.STANDARD.allows_retry(Classification.UNKNOWN)
    assert policy.backoff == RetryPolicy.STANDARD.backoff


# =============================================================================
# FailureRecord and fingerprints
# =============================================================================


def test_failure_record_defaults():
    record = FailureRecord(
        error=ConnectionError("reset"),
        classification=Classification.TRANSIENT,
        attempt_number=1,
    )
    assert record.phase == FailurePhase.OPERATION
    assert record.timestamp.tzinfo is UTC
    assert record.error_type == "ConnectionError"
    assert record.message == "reset"
    assert "TRANSIENT" in record.summary()


def test_failure_record_rejects_zero_attempt_number():
    with pytest.raises(ValueError):
        FailureRecord(
            error=RuntimeError("x"),
            classification=Classification.UNKNOWN,
            attempt_number=0,
        )


def test_fingerprint_groups_same_type_and_message():
    assert fingerprint_error(TimeoutError("slow")) == fingerprint_error(TimeoutError("slow"))
    assert fingerprint_error(TimeoutError("slow")) != fingerprint_error(TimeoutError("slower"))
    assert fingerprint_error(TimeoutError("slow")) != fingerprint_error(ConnectionError("slow"))


def test_fingerprint_fits_signed_64_bit():
    assert 0 <= fingerprint_error(RuntimeError("anything")) < 2**63


# =============================================================================
# Attempt
# =============================================================================


def test_attempt_gets_unique_ids():
    first = Attempt(operation=lambda: 1)
    second = Attempt(operation=lambda: 1)
    assert first.id != second.id
    assert first.label == first.id


def test_attempt_label_prefers_name():
    attempt = Attempt(operation=lambda: 1, name="checkout")
    assert attempt.label == "checkout"
    assert "checkout" in repr(attempt)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"operation": "not callable"},
        {"operation": lambda: 1, "precondition": 42},
        {"operation": lambda: 1, "precondition_timeout": 0},
        {"operation": lambda: 1, "precondition_poll_interval": -1},
    ],
)
def test_attempt_validates(kwargs):
    with pytest.raises((TypeError, ValueError)):
        Attempt(**kwargs)


# =============================================================================
# FlakinessSignal and errors
# =============================================================================


def _record(n: int) -> FailureRecord:
    return FailureRecord(
        error=ConnectionError(f"reset {n}"),
        classification=Classification.TRANSIENT,
        attempt_number=n,
        attempt_id="a-1",
    )


def test_flakiness_signal_requires_retry():
    with pytest.raises(ValueError):
        FlakinessSignal(attempt_id="a-1", attempts_used=1, failure_history=(_record(1),))
    with pytest.raises(ValueError):
        FlakinessSignal(attempt_id="a-1", attempts_used=2, failure_history=())


def test_flakiness_signal_describe():
    signal = FlakinessSignal(
        attempt_id="a-1",
        attempts_used=3,
        failure_history=(_record(1), _record(2)),
        name="login",
    )
    text = signal.describe()
    assert "login" in text
    assert "3 attempts" in text
    assert "reset 1" in text and "reset 2" in text
    assert len(signal.fingerprints) == 2
    assert isinstance(signal.emitted_at, datetime)


def test_policy_exhausted_error_keeps_history():
    history = (_record(1), _record(2))
    error = PolicyExhaustedError(history)
    assert error.attempts == 2
    assert error.failure_history == history
    assert isinstance(error.last_error, ConnectionError)
    assert "reset 2" in str(error)


def test_condition_timeout_error_message():
    error = ConditionTimeoutError(1.5, last_observed=False)
    assert error.timeout == 1.5
    assert error.last_observed is False
    assert "1.500s" in str(error)


def test_operation_failure_retryability():
    assert TransientOperationFailure("x").is_retryable()
    assert not DeterministicOperationFailure("x").is_retryable()
