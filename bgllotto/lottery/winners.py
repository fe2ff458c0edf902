"""Winning ticket extraction from block hashes."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from .allocation import UNASSIGNED_TICKET, TicketHolder
from .capacity import LARGE_POOL, MEDIUM_POOL

NO_WINNER = -1000
"""Winning-ticket value used when the hash does not carry enough digits."""


def digits_per_winner(capacity: int) -> int:
    """Return how many hash digits form one winning ticket for ``capacity``.

    The same number is also the count of winning tickets drawn.
    """

    if capacity == LARGE_POOL:
        return 5
    if capacity == MEDIUM_POOL:
        return 4
    return 3


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def parse_digits(block_hash: str) -> list[int]:
    """Return the decimal digits of ``block_hash`` in order, skipping everything else.

    A hash whose only digit is the zero of its ``0x`` prefix yields ``[]``.
    """

    body = block_hash[2:] if block_hash[:2].lower() == "0x" else block_hash
    if not any(_is_digit(ch) for ch in body):
        return []
    return [int(ch) for ch in block_hash if _is_digit(ch)]


def extract_winners(block_hash: str, capacity: int) -> list[int]:
    """Derive the winning ticket numbers for a pool of ``capacity`` tickets.

    Parameters
    ----------
    block_hash : str
        Hash of the lucky block. Only its ``0``-``9`` characters are used.
    capacity : int
        Size of the ticket pool, selecting ``n`` via :func:`digits_per_winner`.

    Returns
    -------
    list[int]
        Exactly ``n`` entries. The digit string is cut into groups of ``n``
        counted from its right end (the leftmost group may be shorter); groups
        are listed from the rightmost one and the list is padded with
        :data:`NO_WINNER`. With fewer than ``n`` digits every entry is
        :data:`NO_WINNER`.

    Notes
    -----
    Values are below ``10 ** n`` but may still exceed the pool; callers treat
    those as "no winner".
    """

    n = digits_per_winner(capacity)
    digits = parse_digits(block_hash)
    if len(digits) < n:
        return [NO_WINNER] * n

    winners: list[int] = []
    end = len(digits)
    while end > 0 and len(winners) < n:
        start = max(0, end - n)
        value = 0
        for digit in digits[start:end]:
            value = value * 10 + digit
        winners.append(value)
        end = start

    winners.extend([NO_WINNER] * (n - len(winners)))
    return winners


def resolve_winners(
    winning_tickets: Sequence[int],
    tickets: Sequence[int],
    allocation: Mapping[int, TicketHolder],
) -> list[Optional[str]]:
    """Map winning ticket numbers to holder addresses.

    ``None`` marks a slot without a winner: a sentinel or out-of-range ticket
    number, an unassigned pool slot, or an index missing from ``allocation``.
    """

    resolved: list[Optional[str]] = []
    for ticket in winning_tickets:
        if not 0 <= ticket < len(tickets):
            resolved.append(None)
            continue
        index = tickets[ticket]
        holder = allocation.get(index) if index != UNASSIGNED_TICKET else None
        resolved.append(holder.address if holder is not None else None)
    return resolved


__all__ = [
    "NO_WINNER",
    "digits_per_winner",
    "extract_winners",
    "parse_digits",
    "resolve_winners",
]
