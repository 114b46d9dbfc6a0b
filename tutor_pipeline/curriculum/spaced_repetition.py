"""SuperMemo-2 derived review scheduling per (user, concept)."""

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Tuple
import structlog

from tutor_pipeline.core.exceptions import NotFoundError
from tutor_pipeline.models.content import Concept, SpacedRepetitionStat, utcnow
from tutor_pipeline.storage.repository import Repository

logger = structlog.get_logger()

DEFAULT_EASE_FACTOR = 250
MIN_EASE_FACTOR = 130
DEFAULT_INTERVAL = 1
EASE_BONUS = 20
EASE_PENALTY = 30

# Fixed steps for the first two successful reviews
FIRST_INTERVAL = 6
SECOND_INTERVAL = 15


@dataclass(frozen=True)
class ReviewState:
    ease_factor: int
    interval: int


def next_review_state(ease_factor: int, interval: int, is_correct: bool) -> ReviewState:
    """
    Apply one review outcome.

    Correct: 1 -> 6 -> 15 days, then ``interval * ease / 100`` rounded half
    up; ease rises by 20. Incorrect: interval resets to 1 and ease drops by
    30. Ease never goes below 130.
    """
    if is_correct:
        if interval == DEFAULT_INTERVAL:
            interval = FIRST_INTERVAL
        elif interval == FIRST_INTERVAL:
            interval = SECOND_INTERVAL
        else:
            scaled = Decimal(interval) * Decimal(ease_factor) / Decimal(100)
            interval = int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))
        ease_factor = max(MIN_EASE_FACTOR, ease_factor + EASE_BONUS)
    else:
        interval = DEFAULT_INTERVAL
        ease_factor = max(MIN_EASE_FACTOR, ease_factor - EASE_PENALTY)

    return ReviewState(ease_factor=ease_factor, interval=interval)


class SystemClock:
    """UTC wall clock, naive to match the stored columns."""

    def today(self) -> date:
        return self.now().date()

    def now(self) -> datetime:
        return utcnow()


class SpacedRepetitionScheduler:
    """Create, update and query review stats."""

    def __init__(self, repository: Repository, clock=None):
        self.repository = repository
        self.clock = clock or SystemClock()
        # Read-modify-write of a stat is serialized per (user, concept)
        self._locks: Dict[Tuple[int, int], asyncio.Lock] = defaultdict(asyncio.Lock)

    def new_stat(self, user_id: int, concept_id: int) -> SpacedRepetitionStat:
        return SpacedRepetitionStat(
            user_id=user_id,
            concept_id=concept_id,
            ease_factor=DEFAULT_EASE_FACTOR,
            interval=DEFAULT_INTERVAL,
            next_review_date=self.clock.today(),
        )

    async def initialize(self, user_id: int, document_id: int) -> List[SpacedRepetitionStat]:
        """Create a due-today stat for every concept of the document the user has none for."""
        concepts = await self.repository.list_concepts(document_id)
        if not concepts:
            raise NotFoundError(f"No concepts found for document {document_id}")

        created = []
        for concept in concepts:
            async with self._locks[(user_id, concept.id)]:
                if await self.repository.get_stat(user_id, concept.id) is not None:
                    continue
                created.append(await self.repository.add_stat(self.new_stat(user_id, concept.id)))

        logger.info(
            "Initialized spaced repetition",
            user_id=user_id,
            document_id=document_id,
            created=len(created),
        )
        return created

    async def record_answer(self, user_id: int, concept_id: int, is_correct: bool) -> SpacedRepetitionStat:
        async with self._locks[(user_id, concept_id)]:
            updated = await self._apply_answer(user_id, concept_id, is_correct)

        logger.info(
            "Recorded review",
            user_id=user_id,
            concept_id=concept_id,
            is_correct=is_correct,
            interval=updated.interval,
            ease_factor=updated.ease_factor,
        )
        return updated

    async def _apply_answer(self, user_id: int, concept_id: int, is_correct: bool) -> SpacedRepetitionStat:
        stat = await self.repository.get_stat(user_id, concept_id)
        if stat is None:
            stat = await self.repository.add_stat(self.new_stat(user_id, concept_id))

        state = next_review_state(stat.ease_factor, stat.interval, is_correct)
        stat.ease_factor = state.ease_factor
        stat.interval = state.interval
        stat.next_review_date = self.clock.today() + timedelta(days=state.interval)
        stat.attempts += 1
        if is_correct:
            stat.correct_attempts += 1
        stat.last_reviewed_at = self.clock.now()

        return await self.repository.update_stat(stat)

    async def due_concepts(self, user_id: int) -> List[Concept]:
        return await self.repository.list_due_concepts(user_id, self.clock.today())
