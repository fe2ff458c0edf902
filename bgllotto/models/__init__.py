from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .lottery import LotteryRound, LotteryWinner  # noqa: F401

__all__ = [
    "Base",
    "LotteryRound",
    "LotteryWinner",
]
