"""
Aggregation of per-item SRS state into reference and topic progress views.

Everything is recomputed from the current item states on every call; there
is no cached aggregate. This is a pure computation module with no I/O.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from revisa.application.config import SrsSettings, StudyContext
from revisa.application.item_status import current_domain
from revisa.application.references import canonicalize, is_linked
from revisa.application.utils.dates import (
    format_day_month,
    format_day_month_time,
    format_time,
    local_date,
    parse_iso,
    resolve_now,
)
from revisa.domain.constants import (
    LABEL_DONE,
    LABEL_FUTURE,
    LABEL_NEW,
    LABEL_OVERDUE,
    LABEL_START,
    LABEL_TODAY,
    ItemKind,
)
from revisa.domain.models import ReviewableItem
from revisa.domain.stats.models import (
    ItemSetStats,
    ReferenceProgress,
    ReferenceStatus,
    TopicSummary,
)

logger = logging.getLogger(__name__)

UNGROUPED_TOPIC = "Sem assunto"


def _due_at(item: ReviewableItem, now: datetime) -> datetime:
    """Due moment of a started item; unreadable dates count as due now."""
    return parse_iso(item.next_review_date) or now


def aggregate_by_reference(
    target_ref: str,
    questions: Iterable[ReviewableItem],
    flashcards: Iterable[ReviewableItem],
    settings: SrsSettings,
    now: datetime | None = None,
) -> ReferenceStatus:
    """
    Roll up every item linked to `target_ref` across both collections.

    Args:
        target_ref: Reference or topic key; canonicalized before matching.
        questions: Question collection (questions and gaps).
        flashcards: Flashcard collection (flashcards and pairs).
        settings: Used for the display timezone of the labels.
        now: Reference moment; defaults to the current time.

    Returns:
        ReferenceStatus with counts per status and kind, pending lists
        sorted oldest-due first, averages and a display label.
    """
    now = resolve_now(now)
    status = ReferenceStatus()

    target = canonicalize(target_ref)
    if not target:
        logger.debug("Empty reference, returning zero status")
        return status

    items = [i for i in (*questions, *flashcards) if is_linked(i, target)]
    for item in items:
        status.counts.total.add(item.kind)

    status.total_items = len(items)
    if not items:
        return status

    sum_domain = 0.0
    sum_mastery = 0.0
    min_future: datetime | None = None
    pending_due: dict[int, datetime] = {}

    for item in items:
        if not item.is_started:
            status.counts.not_started.add(item.kind)
            continue

        status.reviewed_items += 1
        sum_domain += current_domain(item, now)
        sum_mastery += item.mastery_score or 0.0

        due = _due_at(item, now)
        if due <= now:
            status.overdue_items += 1
            status.counts.pending.add(item.kind)
            status.pending.for_kind(item.kind).append(item)
            pending_due[id(item)] = due
        else:
            status.counts.future.add(item.kind)
            if min_future is None or due < min_future:
                min_future = due

    # Unattempted items count as zero, diluting the group average
    status.domain = sum_domain / len(items)
    status.mastery = sum_mastery / len(items)
    status.next_due_at_future = min_future

    tz = settings.tz
    if status.overdue_items > 0:
        oldest: datetime | None = None
        for lst in status.pending.all_lists():
            for item in lst:
                due = pending_due[id(item)]
                if oldest is None or due < oldest:
                    oldest = due
        status.next_review_date = oldest
        status.next_review_label = LABEL_OVERDUE.format(when=format_day_month_time(oldest, tz))
    elif min_future is not None:
        status.next_review_date = min_future
        hhmm = format_time(min_future, tz)
        if local_date(min_future, tz) == local_date(now, tz):
            status.next_review_label = LABEL_TODAY.format(time=hhmm)
        else:
            status.next_review_label = LABEL_FUTURE.format(
                day=format_day_month(min_future, tz), time=hhmm
            )
    elif status.reviewed_items == 0:
        status.next_review_label = LABEL_START
    else:
        status.next_review_label = LABEL_DONE

    for lst in status.pending.all_lists():
        lst.sort(key=lambda i: pending_due[id(i)])

    return status


def reference_progress(
    target_ref: str,
    questions: Iterable[ReviewableItem],
    flashcards: Iterable[ReviewableItem],
    settings: SrsSettings,
    now: datetime | None = None,
) -> ReferenceProgress:
    return aggregate_by_reference(target_ref, questions, flashcards, settings, now).progress()


# ---------- Item-set roll-up ----------


def compute_aggregated_stats(
    items: Iterable[ReviewableItem], now: datetime | None = None
) -> ItemSetStats:
    """Totals and attempted-only averages over any set of items."""
    now = resolve_now(now)
    total = attempted = errors = critical = 0
    mastery_sum = domain_sum = 0.0

    for item in items:
        total += 1
        if item.is_started:
            attempted += 1
            mastery_sum += item.mastery_score or 0.0
            domain_sum += current_domain(item, now)
            if not item.last_was_correct:
                errors += 1
        if item.is_critical:
            critical += 1

    return ItemSetStats(
        total=total,
        attempted=attempted,
        avg_mastery=mastery_sum / attempted if attempted else 0.0,
        avg_domain=domain_sum / attempted if attempted else 0.0,
        error_count=errors,
        critical_count=critical,
    )


def aggregate_mastery(items: Iterable[ReviewableItem], now: datetime | None = None) -> int:
    """Headline score of an item set: rounded average domain."""
    return round(compute_aggregated_stats(items, now).avg_domain)


# ---------- Topic roll-up ----------


def aggregate_by_topic(
    items: Iterable[ReviewableItem],
    context: StudyContext,
    now: datetime | None = None,
) -> list[TopicSummary]:
    """Group items by subject, in first-seen order."""
    now = resolve_now(now)
    topics: dict[str, TopicSummary] = {}
    domain_sums: dict[str, float] = {}

    for item in items:
        key = item.subject or UNGROUPED_TOPIC
        node = topics.get(key)
        if node is None:
            node = topics[key] = TopicSummary(id=key, label=key)
            domain_sums[key] = 0.0

        node.total += 1
        node.item_ids.append(item.id)

        if item.is_started:
            due = parse_iso(item.next_review_date)
            if due is not None and due <= now:
                node.is_overdue = True
            node.attempted += 1
            domain_sums[key] += current_domain(item, now)
            if not item.last_was_correct:
                node.error_count += 1

        if item.is_critical:
            node.critical_count += 1
        if context.is_marked(item.id):
            node.marked_count += 1

    for key, node in topics.items():
        node.mastery_avg = domain_sums[key] / node.attempted if node.attempted else 0.0

    return list(topics.values())


TOPIC_SORT_MODES = ("pending", "alpha", "mastery", "errors", "critical")


def sort_topics(topics: list[TopicSummary], mode: str = "pending") -> list[TopicSummary]:
    if mode == "alpha":
        return sorted(topics, key=lambda t: t.label.casefold())
    if mode == "mastery":
        return sorted(topics, key=lambda t: t.mastery_avg)
    if mode == "errors":
        return sorted(topics, key=lambda t: -t.error_count)
    if mode == "critical":
        return sorted(topics, key=lambda t: -t.critical_count)
    if mode != "pending":
        raise ValueError(f"Unknown sort mode: {mode}")
    # Overdue topics first, then the ones with most errors
    return sorted(topics, key=lambda t: (not t.is_overdue, -t.error_count))


def filter_topics(
    topics: list[TopicSummary],
    only_critical: bool = False,
    only_marked: bool = False,
    search: str = "",
) -> list[TopicSummary]:
    out = topics
    if only_critical:
        out = [t for t in out if t.critical_count > 0]
    if only_marked:
        out = [t for t in out if t.marked_count > 0]
    term = search.strip().lower()
    if term:
        out = [t for t in out if term in t.label.lower()]
    return out


# ---------- Linked-item getters ----------


def _linked_of_kind(
    reference: str, items: Iterable[ReviewableItem], kind: ItemKind
) -> list[ReviewableItem]:
    target = canonicalize(reference)
    if not target:
        return []
    return [i for i in items if i.kind is kind and is_linked(i, target)]


def questions_for_reference(reference: str, items: Iterable[ReviewableItem]) -> list[ReviewableItem]:
    return _linked_of_kind(reference, items, ItemKind.QUESTION)


def gaps_for_reference(reference: str, items: Iterable[ReviewableItem]) -> list[ReviewableItem]:
    return _linked_of_kind(reference, items, ItemKind.GAP)


def flashcards_for_reference(reference: str, items: Iterable[ReviewableItem]) -> list[ReviewableItem]:
    return _linked_of_kind(reference, items, ItemKind.FLASHCARD)


def pairs_for_reference(reference: str, items: Iterable[ReviewableItem]) -> list[ReviewableItem]:
    return _linked_of_kind(reference, items, ItemKind.PAIR)
