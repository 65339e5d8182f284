"""
Mutual-follow checks in front of the follow oracle.

The gate asks the oracle both directions of a follow relationship and
decides whether two users may share a room. Lookups go through a
circuit breaker and are retried a bounded number of times. When the
oracle cannot answer, the gate raises: it fails closed and never lets an
unverified pair through.

Answers are memoized per gate instance. ChatService builds a fresh gate
per operation, so the memo never outlives one request.

Usage:
    from chat.follow_gate import MutualFollowGate

    gate = MutualFollowGate(FollowService)
    pair = gate.first_non_mutual_pair([alice.id, bob.id, carol.id])
    if pair:
        ...
"""

from __future__ import annotations

import logging
from itertools import combinations
from typing import TYPE_CHECKING

from django.conf import settings

from chat.constants import FOLLOW_GATE_CONFIG
from chat.exceptions import FollowServiceUnavailableError
from core.circuit_breaker import CircuitBreaker, CircuitOpenError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from chat.protocols import FollowOracle

logger = logging.getLogger(__name__)


def follow_oracle_circuit() -> CircuitBreaker:
    """Build the shared circuit breaker for follow lookups from settings."""
    return CircuitBreaker(
        name=FOLLOW_GATE_CONFIG.CIRCUIT_NAME,
        failure_threshold=getattr(settings, "FOLLOW_ORACLE_FAILURE_THRESHOLD", 5),
        recovery_timeout=getattr(settings, "FOLLOW_ORACLE_RECOVERY_TIMEOUT", 60),
    )


class MutualFollowGate:
    """
    Decides whether users follow each other.

    Attributes:
        oracle: Source of follow edges
        circuit: Breaker guarding oracle calls
        max_attempts: Oracle attempts per lookup before giving up
    """

    def __init__(
        self,
        oracle: FollowOracle,
        circuit: CircuitBreaker | None = None,
        max_attempts: int = FOLLOW_GATE_CONFIG.MAX_ATTEMPTS,
    ):
        self.oracle = oracle
        self.circuit = circuit or follow_oracle_circuit()
        self.max_attempts = max(1, max_attempts)
        self._answers: dict[tuple[int, int], bool] = {}

    def is_following(self, follower_id: int, followed_id: int) -> bool:
        """
        Return whether ``follower_id`` follows ``followed_id``.

        A False answer is a normal result and does not count against the
        circuit. Only oracle exceptions do.

        Raises:
            FollowServiceUnavailableError: Circuit open or every attempt failed
        """
        key = (follower_id, followed_id)
        if key in self._answers:
            return self._answers[key]

        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                with self.circuit.call():
                    answer = bool(self.oracle.is_following(follower_id, followed_id))
            except CircuitOpenError as e:
                logger.warning(
                    "Follow lookup refused by open circuit",
                    extra={"circuit": self.circuit.name},
                )
                raise FollowServiceUnavailableError(
                    "Follow relationships cannot be verified right now",
                    details={"user_ids": [follower_id, followed_id]},
                ) from e
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Follow lookup failed (attempt {attempt}/{self.max_attempts}): "
                    f"{type(e).__name__}",
                    extra={"follower_id": follower_id, "followed_id": followed_id},
                )
                continue

            self._answers[key] = answer
            return answer

        raise FollowServiceUnavailableError(
            "Follow relationships cannot be verified right now",
            details={"user_ids": [follower_id, followed_id]},
        ) from last_error

    def are_mutual(self, user1_id: int, user2_id: int) -> bool:
        """Return True when both users follow each other."""
        return self.is_following(user1_id, user2_id) and self.is_following(
            user2_id, user1_id
        )

    def first_non_mutual_pair(self, user_ids: Sequence[int]) -> tuple[int, int] | None:
        """
        Check every unordered pair in input order.

        Returns:
            The first pair that does not follow each other, or None when
            every pair is mutual
        """
        for user1_id, user2_id in combinations(user_ids, 2):
            if not self.are_mutual(user1_id, user2_id):
                return user1_id, user2_id
        return None
