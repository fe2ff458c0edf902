import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from numbers import Real
from typing import TYPE_CHECKING, Iterable, Optional

import requests
from sqlalchemy import select
from sqlalchemy.orm import Session

from .blockchain.rpc import RpcError, block_explorer_url
from .lottery import (
    MintResult,
    RemainderPolicy,
    extract_winners,
    mint_tickets,
    resolve_winners,
    ticket_capacity,
)
from .lottery.allocation import EntrantLike, to_score_entries
from .models import LotteryRound, LotteryWinner

if TYPE_CHECKING:
    from .blockchain.rpc import BglRpcClient

logger = logging.getLogger(__name__)

NO_WINNER_LABEL = "no winner"
PAYOUT_DECIMALS = 8


@dataclass(frozen=True)
class BlockchainStatus:
    """Lucky block of the current round and how far the chain is from it."""

    winning_block: int
    blocks_before: int


@dataclass(frozen=True)
class LuckyHash:
    """Hash of the lucky block and its explorer link (empty until it is mined)."""

    hash: str
    href: str


@dataclass(frozen=True)
class PayoutShare:
    """Fraction of the round's prize owed to one holder.

    ``amount`` is the holder's score over the total score, fixed to 8 decimals.
    """

    address: str
    amount: str

    def to_json(self) -> dict:
        return {"address": self.address, "amount": self.amount}


def _resolve_policy(policy: Optional[RemainderPolicy]) -> RemainderPolicy:
    if policy is not None:
        return RemainderPolicy(policy)
    configured = os.getenv("LOTTERY_REMAINDER_POLICY", RemainderPolicy.GREEDY.value)
    try:
        return RemainderPolicy(configured.strip().lower())
    except ValueError as exc:
        raise ValueError(
            f"Unsupported LOTTERY_REMAINDER_POLICY '{configured}'; "
            f"expected one of {[p.value for p in RemainderPolicy]}"
        ) from exc


def seed_round(
    session: Session,
    *,
    last_payment: str,
    winning_block: int,
    round_number: int = 1,
    wbgl: float = 0.0,
) -> LotteryRound:
    """Create or update the round funded by ``last_payment``.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    last_payment : str
        Prize payment transaction hash; identifies the round.
    winning_block : int
        Block height whose hash decides the winners.
    round_number : int, default: 1
        Sequential round counter.
    wbgl : float, default: 0.0
        Prize amount.

    Returns
    -------
    LotteryRound
        The inserted or updated round, flushed so ``id`` is populated.
    """

    if not last_payment:
        raise ValueError("last_payment is required to seed a lottery round")
    if winning_block < 0:
        raise ValueError("winning_block must be non-negative")

    lottery_round = LotteryRound.get_by_last_payment(session, last_payment)
    if lottery_round is None:
        lottery_round = LotteryRound(
            last_payment=last_payment,
            winning_block=winning_block,
            round_number=round_number,
            wbgl=wbgl,
        )
        session.add(lottery_round)
    else:
        lottery_round.winning_block = winning_block
        lottery_round.round_number = round_number
        lottery_round.wbgl = wbgl

    session.flush()
    logger.info(
        f"Seeded lottery round {round_number} (winning block {winning_block}, "
        f"payment {last_payment})"
    )
    return lottery_round


def current_round(session: Session) -> Optional[LotteryRound]:
    """Return the most recently created lottery round, if any."""
    return LotteryRound.latest(session)


def lucky_block(session: Session) -> int:
    """Return the winning block of the current round, or ``0`` when none is seeded."""
    lottery_round = current_round(session)
    return lottery_round.winning_block if lottery_round is not None else 0


def current_block(client: "BglRpcClient") -> int:
    """Return the node's block height, or ``0`` when the node cannot be reached."""
    try:
        height = client.get_block_count()
    except (requests.RequestException, RpcError) as exc:
        logger.error(f"Failed to fetch current block: {exc}")
        return 0
    logger.debug(f"Current block {height}")
    return height


def blockchain_status(session: Session, client: "BglRpcClient") -> BlockchainStatus:
    """Return the lucky block and the number of blocks left before it."""
    current = current_block(client)
    lucky = lucky_block(session)
    blocks_before = lucky - current if current <= lucky else 0
    return BlockchainStatus(winning_block=lucky, blocks_before=blocks_before)


def total_score(entrants: Iterable[EntrantLike]) -> float:
    """Sum the numeric scores of ``entrants``; missing scores count as zero."""
    total = 0
    for entry in to_score_entries(entrants):
        score = entry.score
        if isinstance(score, Real) and not isinstance(score, bool):
            total += score
    return total


def tickets_count(entrants: Iterable[EntrantLike]) -> int:
    """Return the size of the ticket pool the entrants would share."""
    return ticket_capacity(total_score(entrants))


def _draw_block(current: int, lucky: int) -> int:
    # Tickets freeze at the lucky block once the chain has reached it.
    return lucky if current >= lucky else current


def mint_round_tickets(
    session: Session,
    entrants: Iterable[EntrantLike],
    client: "BglRpcClient",
    *,
    remainder_policy: Optional[RemainderPolicy] = None,
) -> MintResult:
    """Mint the ticket pool of the current round for ``entrants``.

    The permutation is seeded with the current block until the lucky block is
    reached, after which the lucky block is used so the pool stays fixed.
    """

    entries = to_score_entries(entrants)
    block = _draw_block(current_block(client), lucky_block(session))
    return mint_tickets(
        total_score(entries),
        block,
        entries,
        remainder_policy=_resolve_policy(remainder_policy),
    )


def lucky_hash(session: Session, client: "BglRpcClient") -> LuckyHash:
    """Return the lucky block hash once the chain has reached the lucky block."""
    current = current_block(client)
    lucky = lucky_block(session)
    if lucky > 0 and current >= lucky:
        return LuckyHash(hash=client.get_block_hash(lucky), href=block_explorer_url(lucky))
    return LuckyHash(hash="", href="")


def draw_round_winners(
    session: Session,
    entrants: Iterable[EntrantLike],
    client: "BglRpcClient",
    *,
    remainder_policy: Optional[RemainderPolicy] = None,
) -> list[str]:
    """Draw and persist the winners of the current round.

    This workflow performs the following steps:

    1. Check that the chain has reached the round's lucky block.
    2. Fetch the lucky block hash and extract the winning ticket numbers for
       the pool size implied by ``entrants``.
    3. Mint the pool at the lucky block and resolve each winning ticket.
    4. Upsert one :class:`LotteryWinner` per position.

    Parameters
    ----------
    session : Session
        Session used to look up the round and persist winners.
    entrants : Iterable[ScoreEntry | Mapping]
        Holders taking part in the round.
    client : BglRpcClient
        Node client used for the block height and hash.
    remainder_policy : Optional[RemainderPolicy], default: None
        Remainder distribution; falls back to ``LOTTERY_REMAINDER_POLICY``.

    Returns
    -------
    list[str]
        Winner addresses, announced from the last extracted ticket to the
        first, with ``"no winner"`` for tickets that resolve to nobody. Empty
        while the lucky block has not been reached.

    Raises
    ------
    ValueError
        If no lottery round has been seeded.
    """

    lottery_round = current_round(session)
    if lottery_round is None:
        raise ValueError("A lottery round must be seeded before drawing winners")

    lucky = lottery_round.winning_block
    current = current_block(client)
    logger.info(f"Checking winners for block {current}, lucky block: {lucky}")
    if not lucky or current < lucky:
        logger.info("No winners yet - current block not reached lucky block")
        return []

    entries = to_score_entries(entrants)
    total = total_score(entries)
    block_hash = client.get_block_hash(lucky)
    winning = list(reversed(extract_winners(block_hash, ticket_capacity(total))))
    minted = mint_tickets(
        total,
        _draw_block(current, lucky),
        entries,
        remainder_policy=_resolve_policy(remainder_policy),
    )
    addresses = resolve_winners(winning, minted.tickets, minted.allocation)

    drawn_at = datetime.now(timezone.utc)
    for position, (ticket, address) in enumerate(zip(winning, addresses)):
        if address is None:
            logger.warning(f"Invalid winner index: {ticket}")
        else:
            logger.info(f"Winner found: {address} with ticket {ticket}")
        _upsert_winner(
            session,
            lottery_round=lottery_round,
            position=position,
            ticket=ticket,
            address=address,
            block_hash=block_hash,
            drawn_at=drawn_at,
        )
    session.flush()

    labels = [address if address is not None else NO_WINNER_LABEL for address in addresses]
    logger.info(f"Winners determined: {', '.join(labels)}")
    return labels


def payout_shares(
    session: Session,
    entrants: Iterable[EntrantLike],
    client: "BglRpcClient",
) -> list[PayoutShare]:
    """Split the current round's prize between ``entrants`` by score.

    Parameters
    ----------
    session : Session
        Session used to look up the current round.
    entrants : Iterable[ScoreEntry | Mapping]
        Holders sharing the prize; order is preserved in the result.
    client : BglRpcClient
        Node client used for the block height.

    Returns
    -------
    list[PayoutShare]
        One share per entrant. Every amount is ``"0.00000000"`` when the total
        score is not positive.

    Raises
    ------
    ValueError
        If no round is seeded or the chain has not reached the lucky block.
    """

    lottery_round = current_round(session)
    if lottery_round is None:
        raise ValueError("A lottery round must be seeded before computing payouts")

    lucky = lottery_round.winning_block
    current = current_block(client)
    if current < lucky:
        raise ValueError(
            f"Lucky block not reached yet (current {current}, lucky {lucky})"
        )

    entries = to_score_entries(entrants)
    total = total_score(entries)
    if total <= 0:
        logger.warning(f"Total score is {total}; every payout share is zero")

    shares = []
    for entry in entries:
        score = entry.score
        if isinstance(score, bool) or not isinstance(score, Real):
            score = 0
        fraction = score / total if total > 0 else 0.0
        shares.append(
            PayoutShare(address=entry.address, amount=f"{fraction:.{PAYOUT_DECIMALS}f}")
        )
    logger.info(f"Processed payments for {len(shares)} owners")
    return shares


def _upsert_winner(
    session: Session,
    *,
    lottery_round: LotteryRound,
    position: int,
    ticket: int,
    address: Optional[str],
    block_hash: str,
    drawn_at: datetime,
) -> LotteryWinner:
    """Fetch or create the winner row for ``position`` and apply the latest draw."""

    winner = session.scalar(
        select(LotteryWinner).where(
            LotteryWinner.round_id == lottery_round.id,
            LotteryWinner.position == position,
        )
    )
    if winner is None:
        winner = LotteryWinner(
            round_id=lottery_round.id,
            position=position,
            ticket=ticket,
            address=address,
            block_hash=block_hash,
            drawn_at=drawn_at,
        )
        session.add(winner)
    else:
        winner.ticket = ticket
        winner.address = address
        winner.block_hash = block_hash
        winner.drawn_at = drawn_at
    return winner


__all__ = [
    "BlockchainStatus",
    "LuckyHash",
    "NO_WINNER_LABEL",
    "PAYOUT_DECIMALS",
    "PayoutShare",
    "blockchain_status",
    "current_block",
    "current_round",
    "draw_round_winners",
    "lucky_block",
    "lucky_hash",
    "mint_round_tickets",
    "payout_shares",
    "seed_round",
    "tickets_count",
    "total_score",
]
