"""
Domain models for reviewable items and their grading results.

These are pure data structures with no I/O or external dependencies.
Each item variant fixes its `kind` discriminant at the class level, so
aggregation never has to sniff fields to tell a gap from a flashcard.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar

from .constants import ItemKind


@dataclass(frozen=True)
class AttemptRecord:
    """
    One graded attempt, appended to an item's history.

    Attributes:
        date: ISO timestamp of the grading.
        was_correct: Outcome of the attempt.
        mastery_after: Mastery score produced by the grading.
        stability_after: Stability (days) produced by the grading.
        time_sec: Whole seconds taken to answer.
        self_eval_level: Rating index (0=again ... 3=easy).
        timing_class: RUSH, OK or SLOW.
        target_sec: Reference answer time shown to the learner.
        trap_code: Optional error/feedback code.
    """

    date: str
    was_correct: bool
    mastery_after: float
    stability_after: float
    time_sec: int
    self_eval_level: int
    timing_class: str
    target_sec: int
    trap_code: str | None = None


@dataclass(kw_only=True)
class ReviewableItem:
    """
    Shared SRS state for every reviewable item variant.

    `total_attempts == 0` means the item was never graded; the review
    dates and `last_was_correct` are then meaningless.
    """

    kind: ClassVar[ItemKind]

    id: str
    stability: float | None = None  # S, in days
    difficulty: float | None = None  # D, range 0.1-1.0
    mastery_score: float = 0.0
    total_attempts: int = 0
    last_was_correct: bool = False
    last_reviewed_at: str | None = None
    next_review_date: str | None = None

    is_critical: bool = False
    hot_topic: bool = False
    subject: str | None = None

    # Reference fields used to resolve the canonical grouping key
    lit_ref: str | None = None
    law_ref: str | None = None
    ref_alias: str | None = None
    tags: list[str] = field(default_factory=list)

    attempt_history: list[AttemptRecord] = field(default_factory=list)

    @property
    def is_gap_type(self) -> bool:
        return self.kind is ItemKind.GAP

    @property
    def is_started(self) -> bool:
        return self.total_attempts > 0


@dataclass(kw_only=True)
class Question(ReviewableItem):
    kind: ClassVar[ItemKind] = ItemKind.QUESTION

    question_text: str
    options: dict[str, str] = field(default_factory=dict)
    correct_answer: str | None = None
    question_ref: str | None = None


@dataclass(kw_only=True)
class Gap(Question):
    """Cloze-style question; excluded from default question pools."""

    kind: ClassVar[ItemKind] = ItemKind.GAP


@dataclass(kw_only=True)
class Flashcard(ReviewableItem):
    kind: ClassVar[ItemKind] = ItemKind.FLASHCARD

    front: str
    back: str


@dataclass(kw_only=True)
class PairFlashcard(Flashcard):
    """Flashcard used in paired-match drills."""

    kind: ClassVar[ItemKind] = ItemKind.PAIR


ITEM_CLASSES: dict[ItemKind, type[ReviewableItem]] = {
    ItemKind.QUESTION: Question,
    ItemKind.GAP: Gap,
    ItemKind.FLASHCARD: Flashcard,
    ItemKind.PAIR: PairFlashcard,
}


@dataclass(frozen=True)
class SrsPatch:
    """
    New field values produced by grading one item.

    The owning store merges these into the item; the core never mutates
    items itself.
    """

    stability: float
    difficulty: float
    mastery_score: float
    next_review_date: str
    last_reviewed_at: str
    timing_class: str
    target_sec: int
    grade: str
    last_was_correct: bool

    def to_record(self) -> dict[str, Any]:
        """camelCase view for external stores."""
        return {
            "stability": self.stability,
            "difficulty": self.difficulty,
            "masteryScore": self.mastery_score,
            "nextReviewDate": self.next_review_date,
            "lastReviewedAt": self.last_reviewed_at,
            "timingClass": self.timing_class,
            "targetSec": self.target_sec,
            "grade": self.grade,
            "lastWasCorrect": self.last_was_correct,
        }
