"""Database models for lottery rounds and their drawn winners."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from ..db.utils import dt_iso


class LotteryRound(Base):
    """A lottery round anchored to the payment that funded it."""

    __tablename__ = "lottery_rounds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key."""

    last_payment: Mapped[str] = mapped_column(String(255), nullable=False)
    """Transaction hash of the prize payment opening the round."""

    winning_block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    """Block height whose hash decides the winners."""

    round_number: Mapped[int] = mapped_column(Integer, nullable=False)
    """Sequential round counter shown to players."""

    wbgl: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    """Prize amount in WBGL."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Timestamp when the round was first recorded."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    """Timestamp bumped whenever the round is modified."""

    winners: Mapped[list["LotteryWinner"]] = relationship(
        back_populates="round",
        cascade="all, delete-orphan",
        order_by="LotteryWinner.position",
    )
    """Winners drawn for this round, ordered by position."""

    __table_args__ = (
        UniqueConstraint("last_payment", name="lottery_rounds_last_payment_key"),
    )

    def __init__(
        self,
        *,
        last_payment: str,
        winning_block: int,
        round_number: int,
        wbgl: float = 0.0,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> None:
        self.last_payment = last_payment
        self.winning_block = winning_block
        self.round_number = round_number
        self.wbgl = wbgl
        if created_at is not None:
            self.created_at = created_at
        if updated_at is not None:
            self.updated_at = updated_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<LotteryRound(id={self.id}, round_number={self.round_number}, "
            f"winning_block={self.winning_block})>"
        )

    def to_json(self) -> dict:
        """Return a JSON-serializable view of the round."""
        return {
            "id": self.id,
            "last_payment": self.last_payment,
            "winning_block": self.winning_block,
            "round": self.round_number,
            "wbgl": self.wbgl,
            "created_at": dt_iso(self.created_at),
            "updated_at": dt_iso(self.updated_at),
        }

    @classmethod
    def get_by_last_payment(
        cls, session: Session, last_payment: str
    ) -> Optional["LotteryRound"]:
        """Return the round funded by ``last_payment`` if it exists."""

        return session.scalar(select(cls).where(cls.last_payment == last_payment))

    @classmethod
    def latest(cls, session: Session) -> Optional["LotteryRound"]:
        """Return the most recently created round."""

        stmt = select(cls).order_by(cls.created_at.desc(), cls.id.desc())
        return session.scalars(stmt).first()


class LotteryWinner(Base):
    """One drawn winning ticket of a round."""

    __tablename__ = "lottery_winners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key."""

    round_id: Mapped[int] = mapped_column(
        ForeignKey("lottery_rounds.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    """Foreign key referencing :class:`LotteryRound`."""

    position: Mapped[int] = mapped_column(Integer, nullable=False)
    """Announcement order of this winner within the round, starting at 0."""

    ticket: Mapped[int] = mapped_column(Integer, nullable=False)
    """Winning ticket number extracted from the block hash."""

    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Winning holder address; ``None`` when the ticket resolved to no one."""

    block_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    """Hash of the lucky block the ticket was drawn from."""

    drawn_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Timestamp of the draw."""

    round: Mapped["LotteryRound"] = relationship(back_populates="winners")

    __table_args__ = (
        UniqueConstraint("round_id", "position", name="lottery_winners_round_position_key"),
    )

    def __init__(
        self,
        *,
        round_id: int,
        position: int,
        ticket: int,
        block_hash: str,
        address: Optional[str] = None,
        drawn_at: Optional[datetime] = None,
    ) -> None:
        self.round_id = round_id
        self.position = position
        self.ticket = ticket
        self.block_hash = block_hash
        self.address = address
        if drawn_at is not None:
            self.drawn_at = drawn_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<LotteryWinner(round_id={self.round_id}, position={self.position}, "
            f"ticket={self.ticket}, address={self.address})>"
        )
