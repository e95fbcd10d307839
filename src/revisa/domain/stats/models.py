"""
Domain models for progress aggregation and session reporting.

These are pure data structures with no I/O or external dependencies.
None of them is persisted; they are recomputed from item state on demand.
"""

from dataclasses import dataclass, field
from datetime import datetime

from revisa.domain.constants import LABEL_NEW, ItemKind
from revisa.domain.models import ReviewableItem

_KIND_FIELDS = {
    ItemKind.QUESTION: "questions",
    ItemKind.GAP: "gaps",
    ItemKind.FLASHCARD: "flashcards",
    ItemKind.PAIR: "pairs",
}


@dataclass
class KindCounts:
    """Per-kind tallies for one status category."""

    questions: int = 0
    gaps: int = 0
    flashcards: int = 0
    pairs: int = 0

    def add(self, kind: ItemKind) -> None:
        name = _KIND_FIELDS[kind]
        setattr(self, name, getattr(self, name) + 1)

    def get(self, kind: ItemKind) -> int:
        return getattr(self, _KIND_FIELDS[kind])

    @property
    def total(self) -> int:
        return self.questions + self.gaps + self.flashcards + self.pairs


@dataclass
class StatusCounts:
    total: KindCounts = field(default_factory=KindCounts)
    pending: KindCounts = field(default_factory=KindCounts)
    not_started: KindCounts = field(default_factory=KindCounts)
    future: KindCounts = field(default_factory=KindCounts)


@dataclass
class PendingLists:
    """Overdue items per kind, oldest due date first."""

    questions: list[ReviewableItem] = field(default_factory=list)
    gaps: list[ReviewableItem] = field(default_factory=list)
    flashcards: list[ReviewableItem] = field(default_factory=list)
    pairs: list[ReviewableItem] = field(default_factory=list)

    def for_kind(self, kind: ItemKind) -> list[ReviewableItem]:
        return getattr(self, _KIND_FIELDS[kind])

    def all_lists(self) -> list[list[ReviewableItem]]:
        return [self.questions, self.gaps, self.flashcards, self.pairs]


@dataclass(frozen=True)
class ReferenceProgress:
    """Compact progress view of one reference group."""

    domain: float
    mastery: float
    next_review_date: datetime | None
    next_review_label: str
    total_items: int
    reviewed_items: int
    overdue_items: int


@dataclass
class ReferenceStatus:
    """
    Full aggregate status of the items linked to one canonical reference.

    This is the rich object that drives list views and study-session
    selection (through the sorted pending lists).
    """

    domain: float = 0.0
    mastery: float = 0.0
    next_review_date: datetime | None = None
    next_review_label: str = LABEL_NEW
    total_items: int = 0
    reviewed_items: int = 0
    overdue_items: int = 0
    counts: StatusCounts = field(default_factory=StatusCounts)
    pending: PendingLists = field(default_factory=PendingLists)
    next_due_at_future: datetime | None = None

    def progress(self) -> ReferenceProgress:
        return ReferenceProgress(
            domain=self.domain,
            mastery=self.mastery,
            next_review_date=self.next_review_date,
            next_review_label=self.next_review_label,
            total_items=self.total_items,
            reviewed_items=self.reviewed_items,
            overdue_items=self.overdue_items,
        )


@dataclass(frozen=True)
class ItemSetStats:
    """Roll-up over an arbitrary item set; averages cover attempted items only."""

    total: int
    attempted: int
    avg_mastery: float
    avg_domain: float
    error_count: int
    critical_count: int


@dataclass
class TopicSummary:
    """Per-subject roll-up used by the topic navigation view."""

    id: str
    label: str
    total: int = 0
    attempted: int = 0
    mastery_avg: float = 0.0
    is_overdue: bool = False
    error_count: int = 0
    critical_count: int = 0
    marked_count: int = 0
    item_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ItemMetrics:
    item: ReviewableItem
    r_now: float
    domain: float
    priority_spaced: float
    priority_exam: float


@dataclass(frozen=True)
class ItemSnapshot:
    """Mastery/domain of an item captured before a study session."""

    mastery: float
    domain: float


@dataclass(frozen=True)
class SessionResult:
    title: str
    started_at: datetime
    ended_at: datetime
    answered_count: int
    correct_count: int
    wrong_count: int
    accuracy: float
    mastery_gain: float
    domain_gain: float
    total_time_sec: int
    is_completed: bool
