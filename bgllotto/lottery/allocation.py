"""Ticket allocation for weighted lottery rounds."""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from .capacity import ticket_capacity, ticket_weight
from .sequence import generate_sequence

logger = logging.getLogger(__name__)

UNASSIGNED_TICKET = -1
"""Pool value for a slot that belongs to no entrant."""


@dataclass(frozen=True)
class ScoreEntry:
    """A lottery entrant and the score backing its tickets.

    Attributes
    ----------
    address : str
        Wallet address of the holder. Compared case-sensitively; duplicates
        are distinct entrants.
    score : float
        Non-negative score. Entrants with a non-positive score get no tickets.
    """

    address: str
    score: float

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ScoreEntry":
        """Build an entry from a ``{"address": ..., "score": ...}`` mapping.

        Missing or non-numeric scores (``None``, strings, booleans) become ``0``.
        """
        if "address" not in data:
            raise ValueError("score entry must include an address")
        score = data.get("score")
        if isinstance(score, bool) or not isinstance(score, Real):
            score = 0
        return cls(address=data["address"], score=score)


@dataclass(frozen=True)
class TicketHolder:
    """Allocation map value identifying who owns a ticket index."""

    address: str


@dataclass
class MintResult:
    """Outcome of :func:`mint_tickets`.

    Attributes
    ----------
    tickets : list[int]
        Ticket pool; each slot holds an allocation index or
        :data:`UNASSIGNED_TICKET`.
    allocation : dict[int, TicketHolder]
        Allocation index to holder, keyed ``0..k-1`` in canonical order.
    """

    tickets: list[int]
    allocation: dict[int, TicketHolder] = field(default_factory=dict)

    @property
    def capacity(self) -> int:
        return len(self.tickets)

    def ticket_counts(self) -> dict[int, int]:
        """Return the number of pool slots held by each allocation index."""
        counts = {index: 0 for index in self.allocation}
        for value in self.tickets:
            if value != UNASSIGNED_TICKET:
                counts[value] = counts.get(value, 0) + 1
        return counts

    def to_json(self) -> dict:
        """Return a JSON-ready ``{"tickets": [...], "map": {...}}`` payload."""
        return {
            "tickets": list(self.tickets),
            "map": {
                index: {"address": holder.address}
                for index, holder in self.allocation.items()
            },
        }


class RemainderPolicy(str, enum.Enum):
    """How slots left after the primary pass are handed out.

    ``GREEDY`` keeps the historical behaviour: the first entrant (in
    canonical order) owed a positive share keeps drawing until the sequence is
    exhausted, so it receives the whole remainder. ``PROPORTIONAL`` caps each
    entrant at its floored share and spreads the rounding leftovers by largest
    fractional share.
    """

    GREEDY = "greedy"
    PROPORTIONAL = "proportional"


class PositionCursor:
    """Sequential reader over a slot permutation shared by allocation passes."""

    def __init__(self, sequence: Sequence[int]) -> None:
        self._sequence = sequence
        self.position = 0

    @property
    def exhausted(self) -> bool:
        return self.position >= len(self._sequence)

    @property
    def remaining(self) -> int:
        return max(len(self._sequence) - self.position, 0)

    def take(self) -> int:
        """Return the next slot and advance the cursor."""
        if self.exhausted:
            raise IndexError("position cursor is exhausted")
        slot = self._sequence[self.position]
        self.position += 1
        return slot


EntrantLike = Union[ScoreEntry, Mapping[str, Any]]


def to_score_entries(entrants: Optional[Iterable[EntrantLike]]) -> list[ScoreEntry]:
    """Normalize ``entrants`` to a list of :class:`ScoreEntry`, preserving order."""
    return [
        entry if isinstance(entry, ScoreEntry) else ScoreEntry.from_mapping(entry)
        for entry in (entrants or ())
    ]


def _has_positive_score(entry: ScoreEntry) -> bool:
    score = entry.score
    if isinstance(score, bool) or not isinstance(score, Real):
        return False
    return score > 0


def rank_entrants(entrants: Optional[Iterable[EntrantLike]]) -> list[ScoreEntry]:
    """Return positive-score entrants in canonical allocation order.

    The order is score descending, ties broken by address ascending. The
    position of an entrant in the returned list is its allocation index.
    """

    eligible = [entry for entry in to_score_entries(entrants) if _has_positive_score(entry)]
    return sorted(eligible, key=lambda entry: (-entry.score, entry.address))


def _assign(tickets: list[int], slot: int, index: int) -> None:
    if 0 <= slot < len(tickets):
        tickets[slot] = index


def _allocate_primary(
    tickets: list[int],
    ranked: Sequence[ScoreEntry],
    weight: float,
    cursor: PositionCursor,
) -> None:
    for index, entry in enumerate(ranked):
        allot = math.floor(weight * entry.score)
        for _ in range(allot):
            if cursor.exhausted:
                return
            _assign(tickets, cursor.take(), index)


def _allocate_remainder_greedy(
    tickets: list[int],
    ranked: Sequence[ScoreEntry],
    remaining: int,
    total: float,
    cursor: PositionCursor,
) -> None:
    for index, entry in enumerate(ranked):
        if math.floor(remaining * (entry.score / total)) <= 0:
            continue
        while not cursor.exhausted:
            _assign(tickets, cursor.take(), index)
        return


def _allocate_remainder_proportional(
    tickets: list[int],
    ranked: Sequence[ScoreEntry],
    remaining: int,
    total: float,
    cursor: PositionCursor,
) -> None:
    fractions: list[tuple[float, int]] = []
    for index, entry in enumerate(ranked):
        exact = remaining * (entry.score / total)
        additional = math.floor(exact)
        for _ in range(additional):
            if cursor.exhausted:
                return
            _assign(tickets, cursor.take(), index)
        fractions.append((exact - additional, index))

    # Stable sort keeps canonical order among equal fractions.
    fractions.sort(key=lambda item: -item[0])
    while not cursor.exhausted:
        for _, index in fractions:
            if cursor.exhausted:
                break
            _assign(tickets, cursor.take(), index)


def mint_tickets(
    total_score: float,
    block: int,
    entrants: Iterable[EntrantLike],
    *,
    remainder_policy: RemainderPolicy = RemainderPolicy.GREEDY,
) -> MintResult:
    """Split a ticket pool among ``entrants`` in proportion to their scores.

    Parameters
    ----------
    total_score : float
        Total score used to size and seed the pool. Callers normally pass the
        sum of all entrant scores.
    block : int
        Block number seeding the slot permutation.
    entrants : Iterable[ScoreEntry | Mapping]
        Entrants in any order. Mappings must carry ``address`` and ``score``.
    remainder_policy : RemainderPolicy, default: RemainderPolicy.GREEDY
        Distribution of the slots left after the primary pass.

    Returns
    -------
    MintResult
        Ticket pool of length ``ticket_capacity(total_score)`` and the
        allocation map covering every positive-score entrant.

    Notes
    -----
    Allocation runs in two passes over one permutation cursor:

    1. Primary pass: entrant ``i`` receives ``floor(weight * score_i)`` slots.
    2. Remainder pass: the unassigned slots are shared out per
       ``remainder_policy``.

    Raises
    ------
    ZeroTotalScoreError
        If entrants hold positive scores but ``total_score`` is zero.
    """

    capacity = ticket_capacity(total_score)
    tickets = [UNASSIGNED_TICKET] * capacity

    ranked = rank_entrants(entrants)
    if not ranked:
        return MintResult(tickets=tickets, allocation={})

    allocation = {index: TicketHolder(entry.address) for index, entry in enumerate(ranked)}
    weight = ticket_weight(total_score)
    cursor = PositionCursor(generate_sequence(total_score, block, capacity))

    _allocate_primary(tickets, ranked, weight, cursor)

    assigned = capacity - tickets.count(UNASSIGNED_TICKET)
    if assigned < capacity:
        remaining = capacity - assigned
        total = sum(entry.score for entry in ranked)
        policy = RemainderPolicy(remainder_policy)
        if policy is RemainderPolicy.GREEDY:
            _allocate_remainder_greedy(tickets, ranked, remaining, total, cursor)
        else:
            _allocate_remainder_proportional(tickets, ranked, remaining, total, cursor)

    logger.debug(
        f"Minted {capacity} tickets for {len(ranked)} entrants at block {block} "
        f"(weight={weight}, policy={RemainderPolicy(remainder_policy).value}, "
        f"unassigned={tickets.count(UNASSIGNED_TICKET)})"
    )
    return MintResult(tickets=tickets, allocation=allocation)


__all__ = [
    "EntrantLike",
    "MintResult",
    "PositionCursor",
    "RemainderPolicy",
    "ScoreEntry",
    "TicketHolder",
    "UNASSIGNED_TICKET",
    "mint_tickets",
    "rank_entrants",
    "to_score_entries",
]
