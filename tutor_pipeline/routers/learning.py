"""Concept study, answer submission, review and mock exam routes."""

from typing import List
from fastapi import APIRouter, Depends

from tutor_pipeline.core.config import settings
from tutor_pipeline.core.dependencies import get_current_user_id, get_learner_service
from tutor_pipeline.curriculum.service import LearnerService
from tutor_pipeline.models.content import (
    AnswerResult,
    AnswerSubmission,
    Concept,
    ConceptNavigation,
    MockExam,
    MockExamRequest,
)

router = APIRouter()


@router.get("/concepts/{concept_id}", response_model=ConceptNavigation)
async def get_concept(
    concept_id: int,
    user_id: int = Depends(get_current_user_id),
    learner: LearnerService = Depends(get_learner_service),
):
    """Concept with its exercises and previous/next navigation."""
    return await learner.get_concept_with_exercises_and_navigation(concept_id, user_id=user_id)


@router.post("/exercises/{exercise_id}/answer", response_model=AnswerResult)
async def submit_answer(
    exercise_id: int,
    submission: AnswerSubmission,
    user_id: int = Depends(get_current_user_id),
    learner: LearnerService = Depends(get_learner_service),
):
    """Check an answer and update the review schedule."""
    return await learner.submit_answer(user_id, exercise_id, submission.answer)


@router.get("/review", response_model=List[Concept])
async def get_review_concepts(
    user_id: int = Depends(get_current_user_id),
    learner: LearnerService = Depends(get_learner_service),
):
    """Concepts due for review today."""
    return await learner.get_due_concepts(user_id)


@router.post("/exams/generate", response_model=MockExam)
async def generate_mock_exam(
    request: MockExamRequest,
    user_id: int = Depends(get_current_user_id),
    learner: LearnerService = Depends(get_learner_service),
):
    """Generate a mock exam over a document's concepts."""
    question_count = request.question_count or settings.MOCK_EXAM_QUESTION_COUNT
    return await learner.generate_mock_exam(user_id, request.document_id, question_count)
