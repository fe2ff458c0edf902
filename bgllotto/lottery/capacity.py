"""Ticket pool sizing and score weighting for the lottery engine."""

from __future__ import annotations

from typing import Union

Number = Union[int, float]

LARGE_POOL = 100_000
MEDIUM_POOL = 10_000
SMALL_POOL = 1_000

TARGET_FILL_RATIO = 0.8
"""Share of the pool the primary allocation pass aims to fill."""


class ZeroTotalScoreError(ValueError):
    """Raised when a weight is requested for a total score of zero."""


def ticket_capacity(total_score: Number) -> int:
    """Return the ticket-pool size tier for ``total_score``.

    Parameters
    ----------
    total_score : int | float
        Sum of all entrant scores.

    Returns
    -------
    int
        ``100000`` when the total is at least 10000, ``10000`` when it is at
        least 1000, otherwise ``1000``.
    """

    if total_score >= 10_000:
        return LARGE_POOL
    if total_score >= 1_000:
        return MEDIUM_POOL
    return SMALL_POOL


def ticket_weight(total_score: Number) -> float:
    """Return the multiplier converting a score into a ticket count.

    The weight scales scores so that the pool is filled up to
    :data:`TARGET_FILL_RATIO` of its capacity; once the total reaches that
    target the weight saturates at ``1``.

    Raises
    ------
    ZeroTotalScoreError
        If ``total_score`` is exactly zero.
    ValueError
        If ``total_score`` is negative.
    """

    if total_score == 0:
        raise ZeroTotalScoreError("total score must be positive to compute a ticket weight")
    if total_score < 0:
        raise ValueError(f"total score must not be negative, got {total_score!r}")

    target = ticket_capacity(total_score) * TARGET_FILL_RATIO
    if total_score >= target:
        return 1
    return target / total_score


__all__ = [
    "LARGE_POOL",
    "MEDIUM_POOL",
    "SMALL_POOL",
    "TARGET_FILL_RATIO",
    "ZeroTotalScoreError",
    "ticket_capacity",
    "ticket_weight",
]
