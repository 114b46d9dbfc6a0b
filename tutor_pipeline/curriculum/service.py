"""Learner-facing queries over the generated curriculum."""

from typing import List, Optional
import structlog

from tutor_pipeline.content_generation.mock_exam import MockExamGenerator
from tutor_pipeline.core.exceptions import InvalidAnswerError, NotFoundError, PermissionDeniedError
from tutor_pipeline.curriculum.spaced_repetition import SpacedRepetitionScheduler
from tutor_pipeline.models.content import (
    AnswerResult,
    Concept,
    ConceptNavigation,
    ConceptRef,
    Document,
    DocumentDetail,
    MockExam,
)
from tutor_pipeline.storage.repository import Repository

logger = structlog.get_logger()


def answers_match(answer: str, correct_answer: str) -> bool:
    return answer.strip().lower() == correct_answer.strip().lower()


class LearnerService:
    """Concept navigation, answer submission, review queue and mock exams."""

    def __init__(
        self,
        repository: Repository,
        scheduler: SpacedRepetitionScheduler,
        mock_exam_generator: MockExamGenerator,
    ):
        self.repository = repository
        self.scheduler = scheduler
        self.mock_exam_generator = mock_exam_generator

    async def _owned_document(self, user_id: int, document_id: int) -> Document:
        document = await self.repository.get_document(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")
        if document.user_id != user_id:
            raise PermissionDeniedError("Not authorized to access this document")
        return document

    async def list_documents(self, user_id: int) -> List[Document]:
        return await self.repository.list_documents(user_id)

    async def get_document_detail(self, user_id: int, document_id: int) -> DocumentDetail:
        document = await self._owned_document(user_id, document_id)
        concepts = await self.repository.list_concepts(document_id)
        return DocumentDetail(document=document, concepts=concepts)

    async def get_concept_with_exercises_and_navigation(
        self, concept_id: int, user_id: Optional[int] = None
    ) -> ConceptNavigation:
        """
        A concept, its exercises and its neighbours in learning order.

        When ``user_id`` is given the concept's document must belong to that
        user.
        """
        concept = await self.repository.get_concept(concept_id)
        if concept is None:
            raise NotFoundError(f"Concept {concept_id} not found")
        if user_id is not None:
            await self._owned_document(user_id, concept.document_id)

        exercises = await self.repository.list_exercises(concept_id)
        siblings = await self.repository.list_concepts(concept.document_id)

        position = next(i for i, c in enumerate(siblings) if c.id == concept.id)
        previous = siblings[position - 1] if position > 0 else None
        following = siblings[position + 1] if position < len(siblings) - 1 else None

        return ConceptNavigation(
            concept=concept,
            exercises=exercises,
            previous=ConceptRef(id=previous.id, title=previous.title) if previous else None,
            next=ConceptRef(id=following.id, title=following.title) if following else None,
        )

    async def submit_answer(self, user_id: int, exercise_id: int, answer: Optional[str]) -> AnswerResult:
        """Grade an answer and feed the outcome into the review schedule."""
        if answer is None or not answer.strip():
            raise InvalidAnswerError("Answer is required")

        exercise = await self.repository.get_exercise(exercise_id)
        if exercise is None:
            raise NotFoundError(f"Exercise {exercise_id} not found")

        is_correct = answers_match(answer, exercise.correct_answer)
        await self.scheduler.record_answer(user_id, exercise.concept_id, is_correct)

        return AnswerResult(
            is_correct=is_correct,
            correct_answer=exercise.correct_answer,
            solution=exercise.solution,
        )

    async def get_due_concepts(self, user_id: int) -> List[Concept]:
        return await self.scheduler.due_concepts(user_id)

    async def generate_mock_exam(self, user_id: int, document_id: int, question_count: int) -> MockExam:
        await self._owned_document(user_id, document_id)
        concepts = await self.repository.list_concepts(document_id)
        return await self.mock_exam_generator.generate(document_id, concepts, question_count)
