"""Shared helpers for the CLI and HTTP surfaces."""

from typing import Any

from revisa.domain.stats.models import ReferenceStatus


def status_to_dict(status: ReferenceStatus) -> dict[str, Any]:
    """JSON-friendly view of a reference status; pending lists become id lists."""
    counts = {
        name: vars(getattr(status.counts, name)).copy()
        for name in ("total", "pending", "not_started", "future")
    }
    return {
        "domain": round(status.domain, 2),
        "mastery": round(status.mastery, 2),
        "next_review_date": status.next_review_date.isoformat() if status.next_review_date else None,
        "next_review_label": status.next_review_label,
        "total_items": status.total_items,
        "reviewed_items": status.reviewed_items,
        "overdue_items": status.overdue_items,
        "counts": counts,
        "pending": {
            "questions": [i.id for i in status.pending.questions],
            "gaps": [i.id for i in status.pending.gaps],
            "flashcards": [i.id for i in status.pending.flashcards],
            "pairs": [i.id for i in status.pending.pairs],
        },
        "next_due_at_future": (
            status.next_due_at_future.isoformat() if status.next_due_at_future else None
        ),
    }
