from __future__ import annotations

import unittest

from bgllotto.lottery import ZeroTotalScoreError, ticket_capacity, ticket_weight


class TicketCapacityTests(unittest.TestCase):
    def test_tiers_and_breakpoints(self) -> None:
        cases = [
            (0, 1000),
            (1, 1000),
            (999, 1000),
            (999.999, 1000),
            (1000, 10000),
            (5000, 10000),
            (9999, 10000),
            (10000, 100000),
            (50000, 100000),
            (10**9, 100000),
        ]
        for total, expected in cases:
            with self.subTest(total=total):
                self.assertEqual(ticket_capacity(total), expected)

    def test_capacity_is_non_decreasing(self) -> None:
        totals = [0, 10, 500, 999, 1000, 1001, 7500, 9999, 10000, 20000, 10**6]
        capacities = [ticket_capacity(t) for t in totals]
        self.assertEqual(capacities, sorted(capacities))
        self.assertTrue(set(capacities) <= {1000, 10000, 100000})


class TicketWeightTests(unittest.TestCase):
    def test_weight_saturates_at_target(self) -> None:
        self.assertEqual(ticket_weight(800), 1)
        self.assertEqual(ticket_weight(999), 1)
        self.assertEqual(ticket_weight(80000), 1)
        self.assertEqual(ticket_weight(100000), 1)

    def test_weight_below_target(self) -> None:
        self.assertEqual(ticket_weight(799), 800 / 799)
        self.assertEqual(ticket_weight(3), 800 / 3)
        self.assertEqual(ticket_weight(1000), 8.0)
        self.assertEqual(ticket_weight(9999), 8000 / 9999)
        self.assertEqual(ticket_weight(10000), 8.0)
        self.assertEqual(ticket_weight(50000), 1.6)

    def test_weight_is_at_least_one(self) -> None:
        for total in [0.5, 1, 7, 300, 799, 800, 1000, 7999, 8000, 10000, 79999, 10**7]:
            with self.subTest(total=total):
                self.assertGreaterEqual(ticket_weight(total), 1)

    def test_zero_total_raises(self) -> None:
        with self.assertRaises(ZeroTotalScoreError):
            ticket_weight(0)
        self.assertTrue(issubclass(ZeroTotalScoreError, ValueError))

    def test_negative_total_raises(self) -> None:
        with self.assertRaises(ValueError):
            ticket_weight(-5)


if __name__ == "__main__":
    unittest.main()
