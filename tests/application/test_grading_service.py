from unittest.mock import AsyncMock

import pytest
from conftest import NOW, iso_days_ago, make_question

from revisa.application.grading_service import GradingService
from revisa.application.utils.dates import to_iso
from revisa.domain.constants import Grade
from revisa.domain.exceptions import ItemNotFoundError


@pytest.fixture
def mock_store():
    return AsyncMock()


@pytest.fixture
def stored_item():
    return make_question(
        "art-5",
        stability=10.0,
        difficulty=0.5,
        mastery_score=40.0,
        total_attempts=3,
        last_was_correct=True,
        last_reviewed_at=iso_days_ago(10),
    )


@pytest.mark.asyncio
async def test_grade_saves_updated_item(mock_store, stored_item, settings):
    mock_store.get_item.return_value = stored_item
    service = GradingService(store=mock_store, settings=settings)

    outcome = await service.grade("art-5", Grade.GOOD, 25, now=NOW)

    mock_store.get_item.assert_awaited_once_with("art-5")
    mock_store.save_item.assert_awaited_once_with(outcome.item)

    saved = outcome.item
    assert saved.id == "art-5"
    assert saved.total_attempts == 4
    assert saved.stability == pytest.approx(20.19, abs=0.01)
    assert saved.last_reviewed_at == to_iso(NOW)
    assert saved.attempt_history == [outcome.attempt]
    assert outcome.attempt.trap_code == "CODE_CORRECT"
    assert outcome.domain_before == pytest.approx(40.0 * 0.3679, abs=0.01)
    # The fetched item is left untouched
    assert stored_item.total_attempts == 3


@pytest.mark.asyncio
async def test_again_is_recorded_as_error(mock_store, stored_item, settings):
    mock_store.get_item.return_value = stored_item
    service = GradingService(mock_store, settings)

    outcome = await service.grade("art-5", 0, 8, now=NOW)

    assert outcome.patch.last_was_correct is False
    assert outcome.attempt.trap_code == "SRS_ERROR"
    assert outcome.item.stability == pytest.approx(5.0)


@pytest.mark.asyncio
async def test_explicit_wrong_answer_with_good_rating(mock_store, stored_item, settings):
    mock_store.get_item.return_value = stored_item
    service = GradingService(mock_store, settings)

    outcome = await service.grade("art-5", Grade.GOOD, 30, was_correct=False, trap_code="PEGADINHA", now=NOW)

    assert outcome.patch.last_was_correct is False
    assert outcome.patch.grade == "good"
    assert outcome.attempt.trap_code == "PEGADINHA"


@pytest.mark.asyncio
async def test_missing_item_raises(mock_store, settings):
    mock_store.get_item.return_value = None
    service = GradingService(mock_store, settings)

    with pytest.raises(ItemNotFoundError) as exc:
        await service.grade("nope", Grade.GOOD, 10, now=NOW)

    assert exc.value.item_id == "nope"
    mock_store.save_item.assert_not_awaited()


@pytest.mark.asyncio
async def test_invalid_rating_does_not_touch_store(mock_store, settings):
    service = GradingService(mock_store, settings)

    with pytest.raises(ValueError):
        await service.grade("art-5", 7, 10, now=NOW)

    mock_store.get_item.assert_not_awaited()
