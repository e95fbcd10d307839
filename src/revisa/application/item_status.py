"""
Query-time status of a single item: decay, decayed mastery and urgency.
"""

import math
from datetime import datetime

from revisa.application.config import SrsSettings
from revisa.application.utils.dates import days_between, is_gold_window, parse_iso, resolve_now
from revisa.domain.constants import (
    HOT_TOPIC_WEIGHT,
    URGENCY_ALERT_BELOW,
    URGENCY_CRITICAL_BELOW,
    TimingClass,
    Urgency,
)
from revisa.domain.models import ReviewableItem
from revisa.domain.stats.models import ItemMetrics

__all__ = [
    "retrievability",
    "current_domain",
    "urgency",
    "is_gold_window",
    "timing_class",
    "calculate_metrics",
]


def retrievability(item: ReviewableItem, now: datetime | None = None) -> float:
    """
    Estimated recall probability right now.

    R = exp(-t/S), t = days since last review. Never-reviewed items
    (or ones with an unreadable review date) have R = 0.
    """
    last = parse_iso(item.last_reviewed_at)
    if last is None:
        return 0.0
    stability = item.stability if item.stability and item.stability > 0 else 1.0
    # Clock skew can put the last review slightly in the future
    elapsed = max(0.0, days_between(last, resolve_now(now)))
    return math.exp(-elapsed / stability)


def current_domain(item: ReviewableItem, now: datetime | None = None) -> float:
    """Mastery decayed by current retrievability; 0 for unattempted items."""
    if not item.is_started:
        return 0.0
    return (item.mastery_score or 0.0) * retrievability(item, now)


def urgency(item: ReviewableItem, now: datetime | None = None) -> Urgency:
    r = retrievability(item, now)
    if r < URGENCY_CRITICAL_BELOW:
        return Urgency.CRITICAL
    if r < URGENCY_ALERT_BELOW:
        return Urgency.ALERT
    return Urgency.STABLE


def timing_class(time_taken_sec: float, settings: SrsSettings | None = None) -> TimingClass:
    rush = settings.rush_threshold_sec if settings else 5.0
    slow = settings.slow_threshold_sec if settings else 60.0
    if time_taken_sec < rush:
        return TimingClass.RUSH
    if time_taken_sec > slow:
        return TimingClass.SLOW
    return TimingClass.OK


def calculate_metrics(item: ReviewableItem, now: datetime | None = None) -> ItemMetrics:
    """Priority scores used to rank items for spaced and exam-oriented review."""
    now = resolve_now(now)
    r = retrievability(item, now)
    weight = HOT_TOPIC_WEIGHT if item.hot_topic else 1.0
    return ItemMetrics(
        item=item,
        r_now=r,
        domain=current_domain(item, now),
        priority_spaced=1 - r,
        priority_exam=(1 - r) * weight,
    )
