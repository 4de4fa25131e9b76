"""
Unit tests for ranking, share percentages and reward flooring.
"""

import random
from decimal import Decimal

import pytest

from stoken_server.models import ScoreRecord, TimeRecord
from stoken_server.services.shares import (
    TOP_N,
    ShareEntry,
    allocate_rewards,
    calculate_shares,
    rank_scores,
    rank_times,
)


def scores(*values, start_ts=1_000):
    return [
        ScoreRecord(key=f"user{i}", username=f"user{i}", highscore=v, timestamp=start_ts + i)
        for i, v in enumerate(values)
    ]


class TestRanking:

    def test_descending_by_highscore(self):
        ranked = rank_scores(scores(10, 30, 20))
        assert [r.highscore for r in ranked] == [30, 20, 10]

    def test_only_top_fifteen(self):
        ranked = rank_scores(scores(*range(1, 21)))
        assert len(ranked) == TOP_N
        assert ranked[0].highscore == 20
        assert ranked[-1].highscore == 6

    def test_equal_scores_earliest_submission_first(self):
        records = [
            ScoreRecord(key="late", username="late", highscore=50, timestamp=2_000),
            ScoreRecord(key="early", username="early", highscore=50, timestamp=1_000),
        ]
        assert [r.username for r in rank_scores(records)] == ["early", "late"]

    def test_equal_scores_and_timestamps_alphabetical(self):
        records = [
            ScoreRecord(key="bob", username="bob", highscore=50, timestamp=1_000),
            ScoreRecord(key="Alice", username="Alice", highscore=50, timestamp=1_000),
        ]
        assert [r.username for r in rank_scores(records)] == ["Alice", "bob"]

    def test_times_ascending(self):
        records = [
            TimeRecord(key="a", username="a", time=90, timestamp=1),
            TimeRecord(key="b", username="b", time=45, timestamp=2),
            TimeRecord(key="c", username="c", time=45, timestamp=1),
        ]
        winners = rank_times(records)
        assert [(w.username, w.time) for w in winners] == [("c", 45), ("b", 45), ("a", 90)]

    def test_times_empty(self):
        assert rank_times([]) == []


class TestShares:

    def test_proportional_scenario(self):
        """pool=100, scores 500/300/200 -> 50/30/20 percent and HBD."""
        shares = calculate_shares(scores(500, 300, 200))
        assert [s.share for s in shares] == [Decimal("50.00"), Decimal("30.00"), Decimal("20.00")]

        rewards = allocate_rewards(shares, Decimal("100.000"))
        assert [r.reward for r in rewards] == [
            Decimal("50.000"),
            Decimal("30.000"),
            Decimal("20.000"),
        ]

    def test_equal_thirds_lose_a_thousandth(self):
        """pool=10, three equal scores -> 33.33% each -> 3.333 each, 9.999 total."""
        shares = calculate_shares(scores(1, 1, 1))
        assert all(s.share == Decimal("33.33") for s in shares)

        rewards = allocate_rewards(shares, Decimal("10.000"))
        assert all(r.reward == Decimal("3.333") for r in rewards)
        assert sum(r.reward for r in rewards) == Decimal("9.999")

    def test_total_only_over_top_fifteen(self):
        shares = calculate_shares(scores(*range(1, 21)))
        # 20 / sum(6..20) = 20 / 195
        assert shares[0].share == Decimal("10.26")

    def test_share_rounds_half_up(self):
        # 1/800 = 0.125% and 799/800 = 99.875%
        shares = calculate_shares(scores(1, 799))
        assert [s.share for s in shares] == [Decimal("99.88"), Decimal("0.13")]
        shares = calculate_shares(scores(1, 2))
        assert [s.share for s in shares] == [Decimal("66.67"), Decimal("33.33")]

    def test_zero_total_gives_zero_shares(self):
        shares = calculate_shares(scores(0, 0))
        assert [s.share for s in shares] == [Decimal("0.00"), Decimal("0.00")]
        rewards = allocate_rewards(shares, Decimal("50.000"))
        assert not any(r.payable for r in rewards)

    def test_empty_input(self):
        assert calculate_shares([]) == []

    def test_tiny_reward_is_zeroed_but_kept(self):
        """A 0.0009 HBD reward is listed as 0.000 and not payable."""
        shares = calculate_shares(scores(91, 9))
        rewards = allocate_rewards(shares, Decimal("0.010"))

        assert len(rewards) == 2
        assert rewards[0].reward == Decimal("0.009")
        assert rewards[0].payable
        assert rewards[1].reward == Decimal("0.000")
        assert not rewards[1].payable

    def test_fifteen_ties_never_pay_more_than_the_pool(self):
        """15 equal scores round to 6.67% each (100.05% in total)."""
        shares = calculate_shares(scores(*([10] * 15)))
        assert sum(s.share for s in shares) == Decimal("100.05")

        rewards = allocate_rewards(shares, Decimal("100.000"))

        assert sum(r.reward for r in rewards) == Decimal("100.000")
        assert [r.reward for r in rewards[:14]] == [Decimal("6.670")] * 14
        # The overshoot comes out of the last ranked entry
        assert rewards[-1].reward == Decimal("6.620")

    def test_allocate_keeps_identity_fields(self):
        entry = ShareEntry(username="kid", highscore=12.5, share=Decimal("100.00"))
        (rewarded,) = allocate_rewards([entry], Decimal("7.5"))
        assert rewarded.username == "kid"
        assert rewarded.highscore == 12.5
        assert rewarded.reward == Decimal("7.500")


class TestShareProperties:

    @pytest.mark.parametrize("seed", range(25))
    def test_shares_sum_to_hundred(self, seed):
        rng = random.Random(seed)
        values = [rng.randint(1, 100_000) for _ in range(rng.randint(1, 40))]
        shares = calculate_shares(scores(*values))
        top = min(len(values), TOP_N)
        # Each entry is rounded independently by at most half a hundredth.
        assert abs(sum(s.share for s in shares) - 100) <= Decimal("0.005") * top

    @pytest.mark.parametrize("seed", range(25))
    def test_reward_never_exceeds_exact_product(self, seed):
        rng = random.Random(seed)
        values = [round(rng.uniform(0.5, 5_000), 2) for _ in range(rng.randint(1, 20))]
        pool = Decimal(rng.randint(0, 500_000)) / 1000

        for entry in allocate_rewards(calculate_shares(scores(*values)), pool):
            assert entry.reward <= pool * entry.share / 100
            assert entry.reward == entry.reward.quantize(Decimal("0.001"))

    @pytest.mark.parametrize("seed", range(25))
    def test_total_paid_never_exceeds_pool(self, seed):
        rng = random.Random(seed)
        values = [rng.choice([1, 7, 7, 13]) for _ in range(rng.randint(1, 30))]
        pool = Decimal(rng.randint(0, 500_000)) / 1000

        rewards = allocate_rewards(calculate_shares(scores(*values)), pool)
        assert sum(r.reward for r in rewards) <= pool
