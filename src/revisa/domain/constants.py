"""Centralized constants for the revisa scheduling core.

Thresholds, labels and reserved markers live here so every layer
imports from a single source of truth.
"""

from enum import Enum, IntEnum

# ---------- Time ----------
DAY_SECONDS = 86400.0
SUB_DAY_OFFSET_DAYS = 0.05  # Below this, due dates are offset by raw time, not calendar days

# ---------- Memory model ----------
FAIL_DIFFICULTY_STEP = 0.2
EASY_DIFFICULTY_STEP = 0.15
HARD_DIFFICULTY_STEP = 0.1
DIFFICULTY_MIN = 0.1
DIFFICULTY_MAX = 1.0
STABILITY_FAIL_FLOOR_DAYS = 0.5
MASTERY_DIFFICULTY_WEIGHT = 0.2
MASTERY_MAX = 100.0

# ---------- Retrievability bands ----------
URGENCY_CRITICAL_BELOW = 0.7
URGENCY_ALERT_BELOW = 0.85
HOT_TOPIC_WEIGHT = 1.5

# ---------- References ----------
TRACK_PREFIX = "TRILHA_"
RESERVED_TAGS = frozenset({"pair-match", "literalness", "flashcard"})
PAIR_TAG = "pair-match"
GENERATED_ID_PREFIXES = ("q_", "fc_", "temp_")
MIN_TAG_REFERENCE_LEN = 2  # Tags must be longer than this to act as a reference
ITEM_REF_FIELDS = ("lit_ref", "law_ref", "ref_alias")  # Resolution order

# ---------- Trap codes ----------
TRAP_CODE_ERROR = "SRS_ERROR"
TRAP_CODE_CORRECT = "CODE_CORRECT"

# ---------- Labels ----------
LABEL_NEW = "Novo"
LABEL_START = "Iniciar"
LABEL_DONE = "Concluído"
LABEL_OVERDUE = "ATRASADA ({when})"
LABEL_TODAY = "Hoje às {time}"
LABEL_FUTURE = "{day} às {time}"
DATE_PLACEHOLDER = "-"


class Grade(IntEnum):
    """Self-reported recall rating, indexed 0-3."""

    AGAIN = 0  # Incorrect, forced
    HARD = 1
    GOOD = 2
    EASY = 3

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> "Grade":
        try:
            return cls[label.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown grade label: {label!r}") from None


class TimingClass(str, Enum):
    RUSH = "RUSH"
    OK = "OK"
    SLOW = "SLOW"


class Urgency(str, Enum):
    CRITICAL = "CRITICAL"
    ALERT = "ALERT"
    STABLE = "STABLE"


class ItemKind(str, Enum):
    """Discriminant for the reviewable item variants."""

    QUESTION = "question"
    GAP = "gap"
    FLASHCARD = "flashcard"
    PAIR = "pair"
