"""
Post-session reporting: accuracy and mastery/domain gains.

Pure reduction over the answered items and a pre-session snapshot; it never
touches persisted item state.
"""

from collections.abc import Iterable
from datetime import datetime

from revisa.application.item_status import current_domain
from revisa.application.utils.dates import parse_iso, resolve_now
from revisa.domain.models import ReviewableItem
from revisa.domain.stats.models import ItemSnapshot, SessionResult


def snapshot_items(
    items: Iterable[ReviewableItem], now: datetime | None = None
) -> dict[str, ItemSnapshot]:
    """Capture mastery and current domain of each item before a session starts."""
    now = resolve_now(now)
    return {
        item.id: ItemSnapshot(mastery=item.mastery_score or 0.0, domain=current_domain(item, now))
        for item in items
    }


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def calculate_session_result(
    title: str,
    started_at: datetime,
    answered: list[ReviewableItem],
    snapshots: dict[str, ItemSnapshot],
    completed: bool = True,
    now: datetime | None = None,
) -> SessionResult:
    """
    Summarize a study session.

    Args:
        title: Session title shown in the report.
        started_at: Session start.
        answered: Items after grading, in answer order. An item answered
            several times counts once, with its latest state.
        snapshots: Pre-session state keyed by item id.
        completed: False when the learner left early.
        now: Session end; defaults to the current time.
    """
    ended_at = resolve_now(now)
    started_at = parse_iso(started_at) or ended_at

    latest: dict[str, ReviewableItem] = {}
    for item in answered:
        latest[item.id] = item

    answered_count = len(answered)
    correct_count = sum(1 for i in answered if i.last_was_correct)
    accuracy = correct_count / answered_count * 100 if answered_count else 0.0

    items = list(latest.values())
    blank = ItemSnapshot(mastery=0.0, domain=0.0)
    pre = [snapshots.get(i.id, blank) for i in items]

    mastery_delta = _mean([i.mastery_score or 0.0 for i in items]) - _mean([p.mastery for p in pre])
    domain_delta = _mean([current_domain(i, ended_at) for i in items]) - _mean([p.domain for p in pre])

    return SessionResult(
        title=title,
        started_at=started_at,
        ended_at=ended_at,
        answered_count=answered_count,
        correct_count=correct_count,
        wrong_count=answered_count - correct_count,
        accuracy=accuracy,
        # Shown as progress; a drop is displayed as no gain
        mastery_gain=max(0.0, mastery_delta),
        domain_gain=max(0.0, domain_delta),
        total_time_sec=max(0, round((ended_at - started_at).total_seconds())),
        is_completed=completed,
    )
