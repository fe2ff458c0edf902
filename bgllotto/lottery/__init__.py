"""Deterministic weighted-lottery engine."""

from .allocation import (
    MintResult,
    PositionCursor,
    RemainderPolicy,
    ScoreEntry,
    TicketHolder,
    UNASSIGNED_TICKET,
    mint_tickets,
    rank_entrants,
)
from .capacity import ZeroTotalScoreError, ticket_capacity, ticket_weight
from .scoring import TokenHolding, holder_points, points_by_grade, score_entry
from .sequence import Mulberry32, derive_seed, generate_sequence
from .winners import NO_WINNER, extract_winners, parse_digits, resolve_winners

__all__ = [
    "MintResult",
    "Mulberry32",
    "NO_WINNER",
    "PositionCursor",
    "RemainderPolicy",
    "ScoreEntry",
    "TicketHolder",
    "TokenHolding",
    "UNASSIGNED_TICKET",
    "ZeroTotalScoreError",
    "derive_seed",
    "extract_winners",
    "generate_sequence",
    "holder_points",
    "mint_tickets",
    "parse_digits",
    "points_by_grade",
    "rank_entrants",
    "resolve_winners",
    "score_entry",
    "ticket_capacity",
    "ticket_weight",
]
