import math
from datetime import timedelta

import pytest
from conftest import NOW, iso_days_ago, make_flashcard, make_question

from revisa.application.memory_model import (
    apply_patch,
    build_attempt_record,
    compute_srs_update,
    mastery_from_stability,
    update_difficulty,
    update_stability_on_failure,
)
from revisa.application.utils.dates import parse_iso
from revisa.domain.constants import Grade


@pytest.fixture
def reviewed_item():
    return make_question(
        "art-5",
        stability=10.0,
        difficulty=0.5,
        mastery_score=40.0,
        total_attempts=3,
        last_was_correct=True,
        last_reviewed_at=iso_days_ago(10),
    )


def test_good_after_one_stability_period(reviewed_item, settings):
    patch = compute_srs_update(reviewed_item, True, 2, 25, settings, NOW)

    # R = e^-1, gain = 0.3 * (1 + 2 * (1 - R)) * 1.5
    expected_gain = 0.3 * (1 + 2 * (1 - math.exp(-1))) * 1.5
    assert patch.stability == pytest.approx(10 * (1 + expected_gain), rel=1e-6)
    assert patch.stability == pytest.approx(20.19, abs=0.01)
    assert patch.difficulty == 0.5
    assert patch.mastery_score == pytest.approx(46.1, abs=0.5)
    assert patch.grade == "good"
    assert patch.timing_class == "OK"
    assert patch.last_was_correct is True
    assert patch.last_reviewed_at == "2024-03-10T15:00:00.000Z"


def test_next_review_is_stability_days_ahead(reviewed_item, settings):
    patch = compute_srs_update(reviewed_item, True, 2, 25, settings, NOW)

    due = parse_iso(patch.next_review_date)
    expected = NOW + timedelta(days=patch.stability)
    assert abs((due - expected).total_seconds()) < 1


def test_new_item_graded_easy(settings):
    item = make_question("q_new")

    patch = compute_srs_update(item, True, Grade.EASY, 25, settings, NOW)

    # Starts from the default stability with R = 0
    assert patch.stability == pytest.approx(1.0 * (1 + 0.5 * 3 * 1.5))
    assert patch.difficulty == pytest.approx(0.35)
    assert patch.mastery_score >= 15
    assert patch.mastery_score == pytest.approx(20 * 0.93)
    assert parse_iso(patch.next_review_date) > NOW


def test_fast_answer_gets_speed_bonus(settings):
    item = make_question("q_new")

    slow = compute_srs_update(item, True, Grade.EASY, 25, settings, NOW)
    fast = compute_srs_update(item, True, Grade.EASY, 5, settings, NOW)

    assert fast.stability == pytest.approx(1 + 2.25 * 1.2)
    assert fast.stability > slow.stability
    assert fast.timing_class == "OK"


def test_failure_halves_stability_and_raises_difficulty(reviewed_item, settings):
    patch = compute_srs_update(reviewed_item, False, Grade.HARD, 25, settings, NOW)

    assert patch.stability == pytest.approx(5.0)
    assert patch.difficulty == pytest.approx(0.7)
    assert patch.last_was_correct is False
    # No encouragement floor on failure
    assert patch.mastery_score == pytest.approx(math.log(5) / math.log(365) * 100 * 0.86)


def test_again_forces_incorrect(reviewed_item, settings):
    patch = compute_srs_update(reviewed_item, True, Grade.AGAIN, 25, settings, NOW)

    assert patch.last_was_correct is False
    assert patch.grade == "again"
    assert patch.stability == pytest.approx(5.0)


def test_failure_never_goes_below_half_a_day(settings):
    assert update_stability_on_failure(0.6, settings) == 0.5
    assert update_stability_on_failure(0.2, settings) == 0.5


def test_failure_interval_is_shorter_than_success(reviewed_item, settings):
    good = compute_srs_update(reviewed_item, True, Grade.GOOD, 25, settings, NOW)
    again = compute_srs_update(reviewed_item, False, Grade.AGAIN, 25, settings, NOW)

    assert parse_iso(again.next_review_date) < parse_iso(good.next_review_date)


def test_failure_floor_schedules_half_a_day_later(settings):
    item = make_question("q_x", stability=0.04, difficulty=0.5, total_attempts=1,
                         last_reviewed_at=iso_days_ago(0))

    patch = compute_srs_update(item, False, Grade.AGAIN, 25, settings, NOW)

    # 0.5 day floor applies; due 12 hours later
    assert parse_iso(patch.next_review_date) == NOW + timedelta(hours=12)


def test_stability_is_capped(settings):
    item = make_question(
        "q_old",
        stability=300.0,
        difficulty=0.1,
        total_attempts=8,
        last_was_correct=True,
        last_reviewed_at=iso_days_ago(300),
    )

    patch = compute_srs_update(item, True, Grade.GOOD, 25, settings, NOW)

    assert patch.stability == settings.stability_cap_days
    assert patch.mastery_score == pytest.approx(100 * (1 - 0.1 * 0.2))


def test_difficulty_stays_in_range():
    assert update_difficulty(0.95, False, Grade.AGAIN) == 1.0
    assert update_difficulty(0.2, True, Grade.EASY) == 0.1
    assert update_difficulty(0.95, True, Grade.HARD) == 1.0
    assert update_difficulty(0.5, True, Grade.GOOD) == 0.5


def test_out_of_range_difficulty_is_clamped_before_update(settings):
    item = make_question("q_bad", stability=2.0, difficulty=5.0, total_attempts=1,
                         last_reviewed_at=iso_days_ago(1))

    patch = compute_srs_update(item, True, Grade.GOOD, 25, settings, NOW)

    assert patch.difficulty == 1.0


@pytest.mark.parametrize("rating", [-1, 4])
def test_invalid_rating_raises(reviewed_item, settings, rating):
    with pytest.raises(ValueError):
        compute_srs_update(reviewed_item, True, rating, 25, settings, NOW)


def test_mastery_floors(settings):
    assert mastery_from_stability(1.0, 0.0, True, settings) == 15.0
    assert mastery_from_stability(1.0, 0.0, False, settings) == 0.0
    assert mastery_from_stability(2.0, 0.0, True, settings) == 20.0
    assert mastery_from_stability(2.0, 0.0, False, settings) < 20.0


def test_mastery_is_bounded(settings):
    for stability in (0.5, 1.0, 3.0, 50.0, 365.0, 10_000.0):
        for difficulty in (0.1, 0.5, 1.0):
            value = mastery_from_stability(stability, difficulty, True, settings)
            assert 0.0 <= value <= 100.0


def test_attempt_record_defaults(reviewed_item, settings):
    good = compute_srs_update(reviewed_item, True, Grade.GOOD, 24.6, settings, NOW)
    bad = compute_srs_update(reviewed_item, False, Grade.AGAIN, 70, settings, NOW)

    ok_record = build_attempt_record(good, 24.6, Grade.GOOD)
    err_record = build_attempt_record(bad, 70, Grade.AGAIN)

    assert ok_record.trap_code == "CODE_CORRECT"
    assert ok_record.time_sec == 25
    assert ok_record.self_eval_level == 2
    assert ok_record.mastery_after == good.mastery_score
    assert err_record.trap_code == "SRS_ERROR"
    assert err_record.timing_class == "SLOW"
    assert build_attempt_record(bad, 70, 0, trap_code="PEGADINHA").trap_code == "PEGADINHA"


def test_apply_patch_returns_updated_copy(settings):
    card = make_flashcard("fc_1")
    patch = compute_srs_update(card, True, Grade.GOOD, 12, settings, NOW)
    record = build_attempt_record(patch, 12, Grade.GOOD)

    updated = apply_patch(card, patch, record)

    assert updated is not card
    assert card.total_attempts == 0
    assert card.attempt_history == []
    assert updated.total_attempts == 1
    assert updated.attempt_history == [record]
    assert updated.stability == patch.stability
    assert updated.next_review_date == patch.next_review_date
    assert updated.front == card.front


def test_naive_now_is_read_as_utc(reviewed_item, settings):
    patch = compute_srs_update(reviewed_item, True, 2, 25, settings, NOW.replace(tzinfo=None))

    assert patch == compute_srs_update(reviewed_item, True, 2, 25, settings, NOW)
    assert patch.last_reviewed_at == "2024-03-10T15:00:00.000Z"
