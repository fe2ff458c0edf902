"""Holder scoring: converting token balances into lottery scores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence

from .allocation import ScoreEntry

LEVEL_POINTS: Dict[str, int] = {
    "Common": 1,
    "Special": 3,
    "Rare": 7,
    "Unique": 30,
    "Legendary": 50,
}
GRADES = tuple(LEVEL_POINTS)
DEFAULT_LEVEL_POINTS = 1
MULTIPLIER_SLOTS = 20


@dataclass
class TokenHolding:
    """Balance of one collection token held by an address.

    Attributes
    ----------
    index : int
        Position of the token within the collection listing.
    count : int
        Number of copies held.
    id : str
        On-chain token identifier.
    is_full : bool
        Whether the token's series is fully minted.
    bracket : int
        Multiplier slot the token contributes to.
    level : str
        Rarity grade, one of :data:`GRADES` (other values score as Common).
    """

    index: int
    count: int
    id: str
    is_full: bool
    bracket: int
    level: str


def _level_points(level: str) -> int:
    return LEVEL_POINTS.get(level, DEFAULT_LEVEL_POINTS)


def collection_multipliers(tokens: Sequence[TokenHolding]) -> list[float]:
    """Return the per-bracket multipliers earned by completed token sets.

    Sets are defined by position in ``tokens``: two Common quartets (0-3,
    4-7), five Special triples starting at 8 and five Rare pairs starting at
    23. A set counts when every member is present with a positive balance.
    """

    multipliers = [1.0] * MULTIPLIER_SLOTS

    def held(position: int) -> bool:
        return 0 <= position < len(tokens) and tokens[position].count > 0

    def complete(start: int, size: int) -> bool:
        return all(held(position) for position in range(start, start + size))

    slot = 0
    for start in (0, 4):
        if complete(start, 4):
            multipliers[slot] = 1.5
        slot += 1
    for start in range(8, 21, 3):
        if complete(start, 3):
            multipliers[slot] = 2.0
        slot += 1
    for start in range(23, 32, 2):
        if complete(start, 2):
            multipliers[slot] = 3.0
        slot += 1
    return multipliers


def _token_points(token: TokenHolding, multipliers: Sequence[float]) -> float:
    bracket = max(0, min(len(multipliers) - 1, token.bracket))
    return multipliers[bracket] * _level_points(token.level) * (token.count or 0)


def holder_points(tokens: Sequence[TokenHolding]) -> float:
    """Return the total lottery score for a holder's ``tokens``."""
    multipliers = collection_multipliers(tokens)
    return sum(_token_points(token, multipliers) for token in tokens)


def points_by_grade(tokens: Sequence[TokenHolding]) -> Dict[str, float]:
    """Return the holder's score split across the rarity grades."""
    multipliers = collection_multipliers(tokens)
    scores: Dict[str, float] = {grade: 0 for grade in GRADES}
    for token in tokens:
        if token.level in scores:
            scores[token.level] += _token_points(token, multipliers)
    return scores


def score_entry(address: str, tokens: Sequence[TokenHolding]) -> ScoreEntry:
    """Build the lottery :class:`ScoreEntry` for ``address``."""
    return ScoreEntry(address=address, score=holder_points(tokens))


__all__ = [
    "DEFAULT_LEVEL_POINTS",
    "GRADES",
    "LEVEL_POINTS",
    "TokenHolding",
    "collection_multipliers",
    "holder_points",
    "points_by_grade",
    "score_entry",
]
