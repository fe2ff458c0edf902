from __future__ import annotations

import unittest

from bgllotto.lottery import ScoreEntry, holder_points, points_by_grade, score_entry
from bgllotto.lottery.scoring import GRADES, TokenHolding, collection_multipliers


def _token(index: int, *, count: int = 1, level: str = "Common", bracket: int = 0) -> TokenHolding:
    return TokenHolding(
        index=index,
        count=count,
        id=str(100 + index),
        is_full=False,
        bracket=bracket,
        level=level,
    )


def _padded(size: int, held: dict[int, TokenHolding]) -> list[TokenHolding]:
    return [held.get(i, _token(i, count=0)) for i in range(size)]


class CollectionMultiplierTests(unittest.TestCase):
    def test_defaults_to_one(self) -> None:
        self.assertEqual(collection_multipliers([]), [1.0] * 20)

    def test_common_quartets(self) -> None:
        tokens = [_token(i) for i in range(8)]
        multipliers = collection_multipliers(tokens)
        self.assertEqual(multipliers[0], 1.5)
        self.assertEqual(multipliers[1], 1.5)
        self.assertEqual(multipliers[2:], [1.0] * 18)

    def test_incomplete_quartet_earns_nothing(self) -> None:
        tokens = [_token(0), _token(1), _token(2, count=0), _token(3)]
        self.assertEqual(collection_multipliers(tokens)[0], 1.0)

    def test_special_triple(self) -> None:
        tokens = _padded(11, {i: _token(i, level="Special") for i in (8, 9, 10)})
        multipliers = collection_multipliers(tokens)
        self.assertEqual(multipliers[2], 2.0)
        self.assertEqual(multipliers[3], 1.0)

    def test_last_special_triple_and_rare_pairs(self) -> None:
        held = {i: _token(i, level="Special") for i in (20, 21, 22)}
        held.update({i: _token(i, level="Rare") for i in (23, 24, 31, 32)})
        multipliers = collection_multipliers(_padded(33, held))
        self.assertEqual(multipliers[6], 2.0)
        self.assertEqual(multipliers[7], 3.0)
        self.assertEqual(multipliers[8:11], [1.0, 1.0, 1.0])
        self.assertEqual(multipliers[11], 3.0)

    def test_pair_beyond_token_list_is_incomplete(self) -> None:
        held = {31: _token(31, level="Rare")}
        self.assertEqual(collection_multipliers(_padded(32, held))[11], 1.0)


class HolderPointsTests(unittest.TestCase):
    def test_empty_holdings_score_zero(self) -> None:
        self.assertEqual(holder_points([]), 0)

    def test_completed_set_multiplies_points(self) -> None:
        tokens = [_token(i) for i in range(4)]
        self.assertEqual(holder_points(tokens), 6.0)
        tokens[2] = _token(2, count=0)
        self.assertEqual(holder_points(tokens), 3.0)

    def test_level_points_and_counts(self) -> None:
        tokens = _padded(
            25,
            {
                8: _token(8, level="Special", bracket=2),
                9: _token(9, level="Special", bracket=2),
                10: _token(10, level="Special", bracket=2),
                23: _token(23, level="Rare", bracket=7),
                24: _token(24, level="Rare", bracket=7, count=2),
            },
        )
        # Specials: 3 tokens * 3 points * 2; Rares: 3 copies * 7 points * 3.
        self.assertEqual(holder_points(tokens), 18.0 + 63.0)

    def test_bracket_is_clamped(self) -> None:
        tokens = [_token(i) for i in range(4)]
        tokens.append(_token(4, level="Legendary", count=2, bracket=99))
        tokens.append(_token(5, level="Unique", bracket=-3))
        # Quartet 0-3 pays 1.5 and also applies to the Unique clamped to 0.
        self.assertEqual(holder_points(tokens), 6.0 + 100.0 + 45.0)

    def test_unknown_level_scores_one(self) -> None:
        tokens = [_token(0, level="Mythic", count=3, bracket=5)]
        self.assertEqual(holder_points(tokens), 3.0)
        self.assertEqual(points_by_grade(tokens), {grade: 0 for grade in GRADES})

    def test_points_by_grade(self) -> None:
        tokens = [_token(i) for i in range(4)]
        tokens.append(_token(4, level="Legendary", bracket=10))
        by_grade = points_by_grade(tokens)
        self.assertEqual(set(by_grade), set(GRADES))
        self.assertEqual(by_grade["Common"], 6.0)
        self.assertEqual(by_grade["Legendary"], 50.0)
        self.assertEqual(by_grade["Rare"], 0)
        self.assertEqual(sum(by_grade.values()), holder_points(tokens))

    def test_score_entry(self) -> None:
        entry = score_entry("0xHOLDER", [_token(i) for i in range(4)])
        self.assertEqual(entry, ScoreEntry(address="0xHOLDER", score=6.0))


if __name__ == "__main__":
    unittest.main()
