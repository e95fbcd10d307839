"""
Progress Service: Application layer orchestrator.

Coordinates fetching collections from the store and rolling them up.
"""

import logging
from datetime import datetime

from revisa.application.config import SrsSettings, StudyContext
from revisa.domain.ports import ItemStore
from revisa.domain.stats.models import ItemSetStats, ReferenceStatus, TopicSummary

from .aggregator import (
    aggregate_by_reference,
    aggregate_by_topic,
    compute_aggregated_stats,
    filter_topics,
    sort_topics,
)

logger = logging.getLogger(__name__)


class ProgressService:
    """
    Application service for reference and topic progress views.

    Follows Dependency Inversion: depends on the ItemStore abstraction,
    not concrete adapter implementations.
    """

    def __init__(self, store: ItemStore, settings: SrsSettings):
        self._store = store
        self._settings = settings

    async def reference_status(self, reference: str, now: datetime | None = None) -> ReferenceStatus:
        questions = await self._store.list_questions()
        flashcards = await self._store.list_flashcards()
        status = aggregate_by_reference(reference, questions, flashcards, self._settings, now)
        logger.debug(
            f"Reference {reference!r}: {status.total_items} items, {status.overdue_items} overdue"
        )
        return status

    async def topics(
        self,
        context: StudyContext,
        sort: str = "pending",
        only_critical: bool = False,
        only_marked: bool = False,
        search: str = "",
        now: datetime | None = None,
    ) -> list[TopicSummary]:
        """Topic roll-up of the question collection."""
        questions = await self._store.list_questions()
        topics = aggregate_by_topic(questions, context, now)
        topics = filter_topics(topics, only_critical, only_marked, search)
        return sort_topics(topics, sort)

    async def item_set_stats(self, now: datetime | None = None) -> ItemSetStats:
        questions = await self._store.list_questions()
        flashcards = await self._store.list_flashcards()
        return compute_aggregated_stats([*questions, *flashcards], now)
