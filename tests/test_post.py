"""
Unit tests for the announcement post renderer.
"""

from decimal import Decimal

from stoken_server.core.config import POST_TEMPLATE
from stoken_server.services.post import (
    NO_TIME_WINNERS,
    format_duration,
    format_number,
    load_template,
    post_metadata,
    render_post,
    render_rewards_table,
    render_times_table,
)
from stoken_server.services.shares import ShareEntry, TimeWinner


def test_reward_rows():
    rewards = [
        ShareEntry("alice", 500.0, Decimal("50.00"), Decimal("50.000")),
        ShareEntry("bob", 12.5, Decimal("0.01"), Decimal("0.000")),
    ]
    table = render_rewards_table(rewards, "Gnar Coin")
    assert table.splitlines() == [
        "| 1 | @alice | 500 | 50.00% | 50.000 HBD & 1 Gnar Coin |",
        "| 2 | @bob | 12.5 | 0.01% | 0.000 HBD & 1 Gnar Coin |",
    ]


def test_time_rows():
    winners = [TimeWinner("speedy", 45), TimeWinner("steady", 125)]
    table = render_times_table(winners, "Gnar Coin")
    assert table.splitlines() == [
        "| 1 | @speedy | 45s | 1 Gnar Coin |",
        "| 2 | @steady | 2m 5s | 1 Gnar Coin |",
    ]


def test_no_time_winners_placeholder():
    assert render_times_table([], "Gnar Coin") == NO_TIME_WINNERS


def test_duration_format():
    assert format_duration(0) == "0s"
    assert format_duration(60) == "60s"
    assert format_duration(61) == "1m 1s"
    assert format_duration(600) == "10m 0s"


def test_number_format():
    assert format_number(500.0) == "500"
    assert format_number(12.25) == "12.25"


def test_render_fills_both_slots():
    template = "A\n{{table}}\nB\n{{times_table}}\nC"
    rewards = [ShareEntry("alice", 10.0, Decimal("100.00"), Decimal("5.000"))]
    body = render_post(template, rewards, [], "Token")

    assert "{{" not in body
    assert "| 1 | @alice | 10 | 100.00% | 5.000 HBD & 1 Token |" in body
    assert body.endswith(f"B\n{NO_TIME_WINNERS}\nC")


def test_bundled_template_has_slots():
    template = load_template(POST_TEMPLATE)
    assert "{{table}}" in template
    assert "{{times_table}}" in template


def test_metadata():
    meta = post_metadata("qfs-server", ["hive-173115", "stoken"], "desc", ["https://img"])
    assert meta == {
        "app": "qfs-server",
        "tags": ["hive-173115", "stoken"],
        "description": "desc",
        "format": "markdown",
        "image": ["https://img"],
    }
    assert "image" not in post_metadata("qfs-server", [], "desc")
