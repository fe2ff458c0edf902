from __future__ import annotations

import os
import unittest
from unittest.mock import patch

import requests
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from bgllotto.lottery import RemainderPolicy, ScoreEntry, mint_tickets
from bgllotto.models import Base, LotteryRound, LotteryWinner
from bgllotto.workflows import (
    BlockchainStatus,
    LuckyHash,
    NO_WINNER_LABEL,
    PayoutShare,
    blockchain_status,
    current_block,
    current_round,
    draw_round_winners,
    lucky_block,
    lucky_hash,
    mint_round_tickets,
    payout_shares,
    seed_round,
    tickets_count,
    total_score,
)


class FakeNode:
    def __init__(self, height: int = 0, block_hash: str = "", fail: bool = False):
        self.height = height
        self.block_hash = block_hash
        self.fail = fail
        self.hash_requests: list[int] = []

    def get_block_count(self) -> int:
        if self.fail:
            raise requests.ConnectionError("node unreachable")
        return self.height

    def get_block_hash(self, height: int) -> str:
        self.hash_requests.append(height)
        return self.block_hash


EQUAL_HOLDERS = [ScoreEntry("0x1", 100), ScoreEntry("0x2", 100), ScoreEntry("0x3", 100)]


class WorkflowTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self) -> None:
        self.engine.dispose()


class RoundSeedingTests(WorkflowTestCase):
    def test_seed_round_upserts_by_payment(self) -> None:
        with self.Session.begin() as session:
            first = seed_round(
                session, last_payment="tx-1", winning_block=100, round_number=1, wbgl=5
            )
            again = seed_round(
                session, last_payment="tx-1", winning_block=150, round_number=2, wbgl=7.5
            )
            self.assertEqual(first.id, again.id)
            self.assertEqual(again.winning_block, 150)
            self.assertEqual(again.round_number, 2)
            self.assertEqual(again.wbgl, 7.5)
            count = session.scalar(select(func.count()).select_from(LotteryRound))
            self.assertEqual(count, 1)

    def test_current_round_is_latest(self) -> None:
        with self.Session.begin() as session:
            self.assertIsNone(current_round(session))
            self.assertEqual(lucky_block(session), 0)
            seed_round(session, last_payment="tx-1", winning_block=100)
            seed_round(session, last_payment="tx-2", winning_block=200, round_number=2)
            latest = current_round(session)
            self.assertIsNotNone(latest)
            self.assertEqual(latest.last_payment, "tx-2")
            self.assertEqual(lucky_block(session), 200)

    def test_seed_round_validates_input(self) -> None:
        with self.Session.begin() as session:
            with self.assertRaises(ValueError):
                seed_round(session, last_payment="", winning_block=1)
            with self.assertRaises(ValueError):
                seed_round(session, last_payment="tx", winning_block=-1)


class ChainStatusTests(WorkflowTestCase):
    def test_current_block_failure_returns_zero(self) -> None:
        with self.assertLogs("bgllotto.workflows", level="ERROR"):
            self.assertEqual(current_block(FakeNode(fail=True)), 0)

    def test_blockchain_status(self) -> None:
        with self.Session.begin() as session:
            seed_round(session, last_payment="tx-1", winning_block=100)
            self.assertEqual(
                blockchain_status(session, FakeNode(height=90)),
                BlockchainStatus(winning_block=100, blocks_before=10),
            )
            self.assertEqual(
                blockchain_status(session, FakeNode(height=120)),
                BlockchainStatus(winning_block=100, blocks_before=0),
            )

    def test_lucky_hash_only_after_lucky_block(self) -> None:
        with self.Session.begin() as session:
            self.assertEqual(lucky_hash(session, FakeNode(height=500)), LuckyHash("", ""))
            seed_round(session, last_payment="tx-1", winning_block=100)
            node = FakeNode(height=99, block_hash="00ff")
            self.assertEqual(lucky_hash(session, node), LuckyHash("", ""))
            node.height = 100
            self.assertEqual(
                lucky_hash(session, node),
                LuckyHash(hash="00ff", href="https://bgl.bitaps.com/100"),
            )
            self.assertEqual(node.hash_requests, [100])


class TicketWorkflowTests(WorkflowTestCase):
    def test_total_score_and_ticket_count(self) -> None:
        entrants = [
            {"address": "0xA", "score": 600},
            {"address": "0xB", "score": 500},
            {"address": "0xC", "score": None},
        ]
        self.assertEqual(total_score(entrants), 1100)
        self.assertEqual(tickets_count(entrants), 10000)
        self.assertEqual(tickets_count([]), 1000)

    def test_mint_uses_lucky_block_once_reached(self) -> None:
        with self.Session.begin() as session:
            seed_round(session, last_payment="tx-1", winning_block=100)
            after = mint_round_tickets(session, EQUAL_HOLDERS, FakeNode(height=150))
            self.assertEqual(after, mint_tickets(300, 100, EQUAL_HOLDERS))
            before = mint_round_tickets(session, EQUAL_HOLDERS, FakeNode(height=50))
            self.assertEqual(before, mint_tickets(300, 50, EQUAL_HOLDERS))

    def test_remainder_policy_from_environment(self) -> None:
        with self.Session.begin() as session:
            seed_round(session, last_payment="tx-1", winning_block=100)
            node = FakeNode(height=150)
            with patch.dict(os.environ, {"LOTTERY_REMAINDER_POLICY": "Proportional"}):
                minted = mint_round_tickets(session, EQUAL_HOLDERS, node)
            self.assertEqual(minted.ticket_counts(), {0: 334, 1: 333, 2: 333})

            explicit = mint_round_tickets(
                session, EQUAL_HOLDERS, node, remainder_policy=RemainderPolicy.GREEDY
            )
            self.assertEqual(explicit.ticket_counts(), {0: 468, 1: 266, 2: 266})

            with patch.dict(os.environ, {"LOTTERY_REMAINDER_POLICY": "lumpy"}):
                with self.assertRaises(ValueError):
                    mint_round_tickets(session, EQUAL_HOLDERS, node)


class DrawWinnersTests(WorkflowTestCase):
    def _winner_rows(self, session) -> list[LotteryWinner]:
        return list(
            session.scalars(select(LotteryWinner).order_by(LotteryWinner.position))
        )

    def test_requires_seeded_round(self) -> None:
        with self.Session.begin() as session:
            with self.assertRaises(ValueError):
                draw_round_winners(session, EQUAL_HOLDERS, FakeNode(height=10))

    def test_no_winners_before_lucky_block(self) -> None:
        with self.Session.begin() as session:
            seed_round(session, last_payment="tx-1", winning_block=100)
            node = FakeNode(height=99, block_hash="0x123")
            self.assertEqual(draw_round_winners(session, EQUAL_HOLDERS, node), [])
            self.assertEqual(node.hash_requests, [])
            self.assertEqual(self._winner_rows(session), [])

    def test_draw_persists_winners(self) -> None:
        solo = [ScoreEntry("0xSOLO", 1000)]
        with self.Session.begin() as session:
            lottery_round = seed_round(session, last_payment="tx-1", winning_block=100)
            node = FakeNode(height=120, block_hash="0x12345678901234567890")
            winners = draw_round_winners(session, solo, node)
            self.assertEqual(winners, ["0xSOLO"] * 4)
            self.assertEqual(node.hash_requests, [100])

            rows = self._winner_rows(session)
            self.assertEqual([row.position for row in rows], [0, 1, 2, 3])
            self.assertEqual([row.ticket for row in rows], [5678, 9012, 3456, 7890])
            self.assertTrue(all(row.round_id == lottery_round.id for row in rows))
            self.assertTrue(all(row.block_hash == "0x12345678901234567890" for row in rows))

    def test_redraw_overwrites_rows(self) -> None:
        solo = [ScoreEntry("0xSOLO", 1000)]
        with self.Session.begin() as session:
            seed_round(session, last_payment="tx-1", winning_block=100)
            draw_round_winners(session, solo, FakeNode(height=120, block_hash="0x12345678901234567890"))
            with self.assertLogs("bgllotto.workflows", level="WARNING"):
                winners = draw_round_winners(
                    session, solo, FakeNode(height=130, block_hash="0xabc")
                )
            self.assertEqual(winners, [NO_WINNER_LABEL] * 4)

            rows = self._winner_rows(session)
            self.assertEqual(len(rows), 4)
            self.assertTrue(all(row.address is None for row in rows))
            self.assertTrue(all(row.ticket == -1000 for row in rows))
            self.assertTrue(all(row.block_hash == "0xabc" for row in rows))

    def test_deleting_round_removes_winners(self) -> None:
        with self.Session.begin() as session:
            lottery_round = seed_round(session, last_payment="tx-1", winning_block=100)
            draw_round_winners(
                session,
                [ScoreEntry("0xSOLO", 1000)],
                FakeNode(height=120, block_hash="0x12345678901234567890"),
            )
            session.expire(lottery_round, ["winners"])
            session.delete(lottery_round)
            session.flush()
            self.assertEqual(self._winner_rows(session), [])


class PayoutShareTests(WorkflowTestCase):
    def test_requires_seeded_round(self) -> None:
        with self.Session.begin() as session:
            with self.assertRaises(ValueError):
                payout_shares(session, EQUAL_HOLDERS, FakeNode(height=10))

    def test_refused_before_lucky_block(self) -> None:
        with self.Session.begin() as session:
            seed_round(session, last_payment="tx-1", winning_block=100)
            with self.assertRaises(ValueError):
                payout_shares(session, EQUAL_HOLDERS, FakeNode(height=99))
            with self.assertLogs("bgllotto.workflows", level="ERROR"):
                with self.assertRaises(ValueError):
                    payout_shares(session, EQUAL_HOLDERS, FakeNode(fail=True))

    def test_shares_follow_scores(self) -> None:
        entrants = [
            {"address": "0xA", "score": 1},
            {"address": "0xB", "score": 2},
            {"address": "0xC", "score": None},
        ]
        with self.Session.begin() as session:
            seed_round(session, last_payment="tx-1", winning_block=100)
            shares = payout_shares(session, entrants, FakeNode(height=100))
        self.assertEqual(
            shares,
            [
                PayoutShare(address="0xA", amount="0.33333333"),
                PayoutShare(address="0xB", amount="0.66666667"),
                PayoutShare(address="0xC", amount="0.00000000"),
            ],
        )
        self.assertEqual(shares[1].to_json(), {"address": "0xB", "amount": "0.66666667"})

    def test_zero_total_gives_zero_shares(self) -> None:
        entrants = [{"address": "0xA", "score": 0}, {"address": "0xB", "score": None}]
        with self.Session.begin() as session:
            seed_round(session, last_payment="tx-1", winning_block=100)
            with self.assertLogs("bgllotto.workflows", level="WARNING"):
                shares = payout_shares(session, entrants, FakeNode(height=150))
        self.assertEqual([share.amount for share in shares], ["0.00000000"] * 2)
        self.assertEqual([share.address for share in shares], ["0xA", "0xB"])


if __name__ == "__main__":
    unittest.main()
