"""
Tests for MutualFollowGate.

Uses an in-memory follow oracle so failures can be scripted.
"""

import pytest

from chat.exceptions import FollowServiceUnavailableError
from chat.follow_gate import MutualFollowGate
from core.circuit_breaker import CircuitBreaker, CircuitState


class FakeOracle:
    """Follow oracle backed by a set of (follower, followed) edges."""

    def __init__(self, edges=(), failures=0):
        self.edges = set(edges)
        self.failures = failures
        self.calls = []

    def is_following(self, follower_id, followed_id):
        self.calls.append((follower_id, followed_id))
        if self.failures:
            self.failures -= 1
            raise ConnectionError("follow store unreachable")
        return (follower_id, followed_id) in self.edges


def mutual_edges(*user_ids):
    return {(a, b) for a in user_ids for b in user_ids if a != b}


@pytest.fixture
def circuit():
    return CircuitBreaker(name="test-follow-oracle", failure_threshold=3, recovery_timeout=60)


class TestIsFollowing:
    """
    Verifies:
    - Answers are memoized per gate
    - Transient oracle errors are retried
    - Persistent errors surface as FollowServiceUnavailableError

    Why it matters:
        A room creation checks many pairs; asking the oracle twice for the
        same edge is wasted work, and an unreachable oracle must deny.
    """

    def test_answer_memoized(self, circuit):
        oracle = FakeOracle(edges={(1, 2)})
        gate = MutualFollowGate(oracle, circuit=circuit)

        assert gate.is_following(1, 2) is True
        assert gate.is_following(1, 2) is True
        assert oracle.calls == [(1, 2)]

    def test_memo_is_per_gate(self, circuit):
        oracle = FakeOracle(edges={(1, 2)})

        MutualFollowGate(oracle, circuit=circuit).is_following(1, 2)
        MutualFollowGate(oracle, circuit=circuit).is_following(1, 2)

        assert len(oracle.calls) == 2

    def test_transient_failure_retried(self, circuit):
        oracle = FakeOracle(edges={(1, 2)}, failures=1)
        gate = MutualFollowGate(oracle, circuit=circuit, max_attempts=2)

        assert gate.is_following(1, 2) is True
        assert len(oracle.calls) == 2

    def test_persistent_failure_raises(self, circuit):
        oracle = FakeOracle(edges={(1, 2)}, failures=10)
        gate = MutualFollowGate(oracle, circuit=circuit, max_attempts=2)

        with pytest.raises(FollowServiceUnavailableError) as exc_info:
            gate.is_following(1, 2)

        assert len(oracle.calls) == 2
        assert exc_info.value.http_status == 503
        assert exc_info.value.error_code == "FOLLOW_SERVICE_UNAVAILABLE"
        assert isinstance(exc_info.value.__cause__, ConnectionError)


class TestCircuit:
    """
    Verifies:
    - An open circuit fails closed without calling the oracle
    - A "not following" answer is not a failure

    Why it matters:
        A breaker must never turn an outage into "everyone is mutual".
    """

    def test_open_circuit_denies_without_calling_oracle(self, circuit):
        failing = FakeOracle(failures=10)
        gate = MutualFollowGate(failing, circuit=circuit, max_attempts=3)
        with pytest.raises(FollowServiceUnavailableError):
            gate.is_following(1, 2)
        assert circuit.state == CircuitState.OPEN

        healthy = FakeOracle(edges=mutual_edges(1, 2))
        with pytest.raises(FollowServiceUnavailableError):
            MutualFollowGate(healthy, circuit=circuit).are_mutual(1, 2)

        assert healthy.calls == []

    def test_negative_answers_do_not_open_circuit(self, circuit):
        oracle = FakeOracle()

        for follower_id in range(10):
            gate = MutualFollowGate(oracle, circuit=circuit)
            assert gate.is_following(follower_id, 99) is False

        assert circuit.state == CircuitState.CLOSED


class TestMutualChecks:
    """
    Verifies:
    - are_mutual needs both directions
    - first_non_mutual_pair reports the first failing pair in input order

    Why it matters:
        Error messages name the offending pair, so the order must be
        predictable.
    """

    def test_one_way_follow_is_not_mutual(self, circuit):
        gate = MutualFollowGate(FakeOracle(edges={(1, 2)}), circuit=circuit)

        assert gate.are_mutual(1, 2) is False

    def test_both_directions_are_mutual(self, circuit):
        gate = MutualFollowGate(FakeOracle(edges=mutual_edges(1, 2)), circuit=circuit)

        assert gate.are_mutual(1, 2) is True
        assert gate.are_mutual(2, 1) is True

    def test_all_pairs_mutual_returns_none(self, circuit):
        gate = MutualFollowGate(FakeOracle(edges=mutual_edges(1, 2, 3)), circuit=circuit)

        assert gate.first_non_mutual_pair([1, 2, 3]) is None

    def test_first_failing_pair_in_input_order(self, circuit):
        # 1-2 and 1-3 mutual, 2-3 not
        edges = mutual_edges(1, 2) | mutual_edges(1, 3)
        gate = MutualFollowGate(FakeOracle(edges=edges), circuit=circuit)

        assert gate.first_non_mutual_pair([1, 2, 3]) == (2, 3)
        assert gate.first_non_mutual_pair([3, 2, 1]) == (3, 2)

    def test_single_member_has_no_pairs(self, circuit):
        oracle = FakeOracle()
        gate = MutualFollowGate(oracle, circuit=circuit)

        assert gate.first_non_mutual_pair([1]) is None
        assert oracle.calls == []
