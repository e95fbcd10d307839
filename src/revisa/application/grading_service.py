"""
Grading Service: Application layer orchestrator for one graded attempt.

Owns the read-modify-write cycle: re-fetch the item, compute the patch,
append the attempt record, hand the result back to the store.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from revisa.application.config import SrsSettings
from revisa.application.item_status import current_domain
from revisa.application.memory_model import (
    apply_patch,
    build_attempt_record,
    compute_srs_update,
)
from revisa.application.utils.dates import resolve_now
from revisa.domain.constants import Grade
from revisa.domain.exceptions import ItemNotFoundError
from revisa.domain.models import AttemptRecord, ReviewableItem, SrsPatch
from revisa.domain.ports import ItemStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradeOutcome:
    item: ReviewableItem  # Updated item, as saved
    patch: SrsPatch
    attempt: AttemptRecord
    domain_before: float


class GradingService:
    """
    Application service that grades items held by an ItemStore.

    Depends on the ItemStore abstraction, not a concrete adapter.
    """

    def __init__(self, store: ItemStore, settings: SrsSettings):
        self._store = store
        self._settings = settings

    async def grade(
        self,
        item_id: str,
        rating: int,
        time_taken_sec: float,
        was_correct: bool | None = None,
        trap_code: str | None = None,
        now: datetime | None = None,
    ) -> GradeOutcome:
        """
        Grade one item and persist the result.

        Args:
            item_id: Item to grade.
            rating: 0=again, 1=hard, 2=good, 3=easy.
            time_taken_sec: Seconds taken to answer.
            was_correct: Defaults to `rating != again`.
            trap_code: Optional feedback code for the attempt record.
            now: Grading moment; defaults to the current time.

        Raises:
            ItemNotFoundError: If the store has no such item.
            ValueError: If rating is outside 0-3.
        """
        grade = Grade(rating)
        now = resolve_now(now)
        if was_correct is None:
            was_correct = grade is not Grade.AGAIN

        # Always grade against the store's current state
        item = await self._store.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)

        domain_before = current_domain(item, now)
        patch = compute_srs_update(item, was_correct, grade, time_taken_sec, self._settings, now)
        attempt = build_attempt_record(patch, time_taken_sec, grade, trap_code)
        updated = apply_patch(item, patch, attempt)

        await self._store.save_item(updated)
        logger.info(
            f"Graded {item_id}: {patch.grade} "
            f"S={patch.stability:.2f}d mastery={patch.mastery_score:.1f} due={patch.next_review_date}"
        )
        return GradeOutcome(item=updated, patch=patch, attempt=attempt, domain_before=domain_before)
