"""Deterministic ticket-slot permutations seeded from block numbers."""

from __future__ import annotations

import hashlib
import math
from typing import Union

from .capacity import TARGET_FILL_RATIO, ticket_capacity, ticket_weight

Number = Union[int, float]

_UINT32_MASK = 0xFFFFFFFF
_MULBERRY_INCREMENT = 0x6D2B79F5
_UINT32_RANGE = 4294967296.0


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiplication of two unsigned integers."""
    return (a * b) & _UINT32_MASK


class Mulberry32:
    """Small 32-bit generator producing a repeatable float stream in ``[0, 1)``.

    This is not a cryptographic generator; only its seed is hash-derived.
    """

    def __init__(self, seed: int) -> None:
        self._state = seed & _UINT32_MASK

    def next_float(self) -> float:
        self._state = (self._state + _MULBERRY_INCREMENT) & _UINT32_MASK
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _UINT32_MASK
        return ((t ^ (t >> 14)) & _UINT32_MASK) / _UINT32_RANGE

    __call__ = next_float


def _format_scalar(value: Number) -> str:
    """Render ``value`` the way it appears in a seed key.

    Floats follow ECMAScript ``Number#toString``: shortest round-trip digits,
    plain decimals for exponents in ``(-7, 21]`` and exponent form outside
    (``350.0`` -> ``"350"``, ``1e-05`` -> ``"0.00001"``, ``1e-07`` -> ``"1e-7"``).
    """

    if not isinstance(value, float):
        return str(value)
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    mantissa, _, exponent = repr(abs(value)).partition("e")
    whole, _, fraction = mantissa.partition(".")
    raw = whole + fraction
    digits = raw.lstrip("0")
    # Decimal point position relative to the first significant digit.
    point = len(whole) + int(exponent or 0) - (len(raw) - len(digits))
    digits = digits.rstrip("0")
    k = len(digits)

    if k <= point <= 21:
        text = digits + "0" * (point - k)
    elif 0 < point <= 21:
        text = f"{digits[:point]}.{digits[point:]}"
    elif -6 < point <= 0:
        text = "0." + "0" * -point + digits
    else:
        power = point - 1
        head = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
        text = f"{head}e{'+' if power >= 0 else '-'}{abs(power)}"
    return sign + text


def seed_scalar(total_score: Number) -> Number:
    """Return the score component of the seed key.

    Every total at or beyond the saturation point of its tier shares one
    canonical scalar, ``floor(0.8 * capacity)``.
    """

    if ticket_weight(total_score) == 1:
        return math.floor(ticket_capacity(total_score) * TARGET_FILL_RATIO)
    return total_score


def seed_key(total_score: Number, block: int) -> str:
    """Return the string hashed to seed the permutation."""
    return f"{_format_scalar(seed_scalar(total_score))}{block}"


def derive_seed(total_score: Number, block: int) -> int:
    """Derive the unsigned 32-bit generator seed for ``(total_score, block)``.

    The seed is the first four bytes, big-endian, of the SHA-256 digest of
    :func:`seed_key`.
    """

    digest = hashlib.sha256(seed_key(total_score, block).encode("ascii")).digest()
    return int.from_bytes(digest[:4], "big")


def generate_sequence(total_score: Number, block: int, size: int) -> list[int]:
    """Return a reproducible permutation of ``range(size)``.

    Parameters
    ----------
    total_score : int | float
        Sum of entrant scores; must be positive.
    block : int
        Block number mixed into the seed.
    size : int
        Number of slots to permute, usually the pool capacity.

    Returns
    -------
    list[int]
        Fisher-Yates shuffle of ``0..size-1`` driven by :class:`Mulberry32`.
    """

    if size < 0:
        raise ValueError("size must be non-negative")

    rand = Mulberry32(derive_seed(total_score, block))
    sequence = list(range(size))
    for i in range(size - 1, 0, -1):
        j = math.floor(rand() * (i + 1))
        sequence[i], sequence[j] = sequence[j], sequence[i]
    return sequence


__all__ = [
    "Mulberry32",
    "derive_seed",
    "generate_sequence",
    "seed_key",
    "seed_scalar",
]
