"""Markdown rendering of the weekly announcement post."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .shares import ShareEntry, TimeWinner

NO_TIME_WINNERS = "| No winners this week! |||||"


def load_template(path: Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def format_number(value: float) -> str:
    """Render 500.0 as ``500`` and 12.5 as ``12.5``."""

    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


def format_duration(seconds: int) -> str:
    """Render a completion time as ``2m 5s`` above one minute, else ``45s``."""

    seconds = int(seconds)
    if seconds > 60:
        minutes, rest = divmod(seconds, 60)
        return f"{minutes}m {rest}s"
    return f"{seconds}s"


def render_rewards_table(rewards: Sequence[ShareEntry], token_label: str) -> str:
    rows: List[str] = []
    for rank, entry in enumerate(rewards, start=1):
        rows.append(
            f"| {rank} | @{entry.username} | {format_number(entry.highscore)} "
            f"| {entry.share:.2f}% | {entry.reward:.3f} HBD & 1 {token_label} |"
        )
    return "\n".join(rows)


def render_times_table(winners: Sequence[TimeWinner], token_label: str) -> str:
    if not winners:
        return NO_TIME_WINNERS
    return "\n".join(
        f"| {rank} | @{winner.username} | {format_duration(winner.time)} | 1 {token_label} |"
        for rank, winner in enumerate(winners, start=1)
    )


def render_post(
    template: str,
    rewards: Sequence[ShareEntry],
    time_winners: Sequence[TimeWinner],
    token_label: str,
) -> str:
    """Fill the ``{{table}}`` and ``{{times_table}}`` slots of ``template``."""

    body = template.replace("{{table}}", render_rewards_table(rewards, token_label))
    return body.replace("{{times_table}}", render_times_table(time_winners, token_label))


def post_metadata(
    app: str,
    tags: Sequence[str],
    description: str,
    images: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """json_metadata attached to the announcement comment."""

    metadata: Dict[str, Any] = {
        "app": app,
        "tags": list(tags),
        "description": description,
        "format": "markdown",
    }
    if images:
        metadata["image"] = list(images)
    return metadata


__all__ = [
    "NO_TIME_WINNERS",
    "format_duration",
    "format_number",
    "load_template",
    "post_metadata",
    "render_post",
    "render_rewards_table",
    "render_times_table",
]
