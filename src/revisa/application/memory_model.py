"""
Memory model: converts a graded attempt into new SRS state.

Stability grows multiplicatively on success (more when recall happened
despite heavy decay, and for harder items), and is cut on failure.
Mastery is a log transform of stability into 0-100, adjusted by difficulty.

This is a pure computation module with no I/O.
"""

import math
from dataclasses import replace
from datetime import datetime

from revisa.application.config import SrsSettings
from revisa.application.item_status import retrievability, timing_class
from revisa.application.utils.dates import add_days, resolve_now, to_iso
from revisa.domain.constants import (
    DIFFICULTY_MAX,
    DIFFICULTY_MIN,
    EASY_DIFFICULTY_STEP,
    FAIL_DIFFICULTY_STEP,
    HARD_DIFFICULTY_STEP,
    MASTERY_DIFFICULTY_WEIGHT,
    MASTERY_MAX,
    STABILITY_FAIL_FLOOR_DAYS,
    TRAP_CODE_CORRECT,
    TRAP_CODE_ERROR,
    Grade,
)
from revisa.domain.models import AttemptRecord, ReviewableItem, SrsPatch


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def update_difficulty(difficulty: float, was_correct: bool, grade: Grade) -> float:
    """Failure and "hard" make the item harder, "easy" makes it easier."""
    if not was_correct:
        return min(DIFFICULTY_MAX, difficulty + FAIL_DIFFICULTY_STEP)
    if grade is Grade.EASY:
        return max(DIFFICULTY_MIN, difficulty - EASY_DIFFICULTY_STEP)
    if grade is Grade.HARD:
        return min(DIFFICULTY_MAX, difficulty + HARD_DIFFICULTY_STEP)
    return difficulty


def update_stability_on_failure(stability: float, settings: SrsSettings) -> float:
    return max(STABILITY_FAIL_FLOOR_DAYS, stability * settings.gamma_fail)


def update_stability_on_success(
    stability: float,
    retrievability_now: float,
    difficulty: float,
    grade: Grade,
    time_taken_sec: float,
    settings: SrsSettings,
) -> float:
    """
    Grow stability after a successful recall.

    Formula:
        gain = alpha(rating) * (1 + 2 * (1 - R)) * (1 + (1 - D))
        S_new = S * (1 + gain * time_bonus)

    `time_bonus` is (1 + k_rt_bonus) when the answer came in under half of
    the expected time, else 1.
    """
    alpha = {
        Grade.EASY: settings.alpha_easy,
        Grade.HARD: settings.alpha_hard,
    }.get(grade, settings.alpha_good)

    gain = alpha * (1 + (1 - retrievability_now) * 2) * (1 + (1 - difficulty))

    time_bonus = 1.0
    if time_taken_sec < settings.expected_time_sec * 0.5:
        time_bonus = 1.0 + settings.k_rt_bonus

    return stability * (1 + gain * time_bonus)


def mastery_from_stability(
    stability: float, difficulty: float, was_correct: bool, settings: SrsSettings
) -> float:
    """
    Map stability onto a 0-100 mastery score.

    ln(1) = 0 would show freshly seen items at zero, so correct answers get
    a small floor. The result is scaled down for hard items.
    """
    if stability <= 1:
        mastery = settings.mastery_floor_fresh if was_correct else 0.0
    else:
        mastery = min(
            MASTERY_MAX,
            math.log(stability) / math.log(settings.mastery_log_base_days) * 100,
        )
        if mastery < settings.mastery_floor_correct and was_correct:
            mastery = settings.mastery_floor_correct

    mastery *= 1 - difficulty * MASTERY_DIFFICULTY_WEIGHT
    return _clamp(mastery, 0.0, MASTERY_MAX)


def compute_srs_update(
    item: ReviewableItem,
    was_correct: bool,
    rating: int,
    time_taken_sec: float,
    settings: SrsSettings,
    now: datetime | None = None,
) -> SrsPatch:
    """
    Compute the patch produced by grading `item`.

    Args:
        item: Current item state (re-fetched by the caller).
        was_correct: Outcome; forced to False for rating 0 ("again").
        rating: 0=again, 1=hard, 2=good, 3=easy.
        time_taken_sec: Seconds the learner took to answer.
        settings: Scheduling parameters.
        now: Grading moment; defaults to the current time.

    Returns:
        SrsPatch with the new state. The item is not modified.

    Raises:
        ValueError: If rating is outside 0-3.
    """
    grade = Grade(rating)
    now = resolve_now(now)
    if grade is Grade.AGAIN:
        was_correct = False

    current_s = item.stability if item.stability and item.stability > 0 else settings.s_default_days
    current_d = _clamp(item.difficulty or settings.default_difficulty, DIFFICULTY_MIN, DIFFICULTY_MAX)
    current_r = retrievability(item, now)

    new_d = update_difficulty(current_d, was_correct, grade)
    if was_correct:
        new_s = update_stability_on_success(
            current_s, current_r, current_d, grade, time_taken_sec, settings
        )
    else:
        new_s = update_stability_on_failure(current_s, settings)

    new_s = min(new_s, settings.stability_cap_days)
    mastery = mastery_from_stability(new_s, new_d, was_correct, settings)
    next_date = add_days(now, new_s, settings.tz)

    return SrsPatch(
        stability=new_s,
        difficulty=new_d,
        mastery_score=mastery,
        next_review_date=to_iso(next_date),
        last_reviewed_at=to_iso(now),
        timing_class=timing_class(time_taken_sec, settings).value,
        target_sec=settings.target_sec,
        grade=grade.label,
        last_was_correct=was_correct,
    )


def build_attempt_record(
    patch: SrsPatch,
    time_taken_sec: float,
    rating: int,
    trap_code: str | None = None,
) -> AttemptRecord:
    if trap_code is None:
        trap_code = TRAP_CODE_CORRECT if patch.last_was_correct else TRAP_CODE_ERROR
    return AttemptRecord(
        date=patch.last_reviewed_at,
        was_correct=patch.last_was_correct,
        mastery_after=patch.mastery_score,
        stability_after=patch.stability,
        time_sec=round(time_taken_sec),
        self_eval_level=int(rating),
        timing_class=patch.timing_class,
        target_sec=patch.target_sec,
        trap_code=trap_code,
    )


def apply_patch(
    item: ReviewableItem, patch: SrsPatch, record: AttemptRecord
) -> ReviewableItem:
    """Return a copy of `item` with the patch merged and the attempt appended."""
    return replace(
        item,
        stability=patch.stability,
        difficulty=patch.difficulty,
        mastery_score=patch.mastery_score,
        next_review_date=patch.next_review_date,
        last_reviewed_at=patch.last_reviewed_at,
        last_was_correct=patch.last_was_correct,
        total_attempts=item.total_attempts + 1,
        attempt_history=[*item.attempt_history, record],
    )
