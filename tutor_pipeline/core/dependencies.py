"""Shared dependencies for the Tutor Pipeline Service."""

from typing import Optional
from fastapi import Header, HTTPException, Request
import structlog

from tutor_pipeline.content_generation.completion import CompletionClient, OpenAICompletionClient
from tutor_pipeline.content_generation.concept_extractor import ConceptExtractor
from tutor_pipeline.content_generation.exercise_generator import ExerciseGenerator
from tutor_pipeline.content_generation.mock_exam import MockExamGenerator
from tutor_pipeline.core.config import settings
from tutor_pipeline.curriculum.service import LearnerService
from tutor_pipeline.curriculum.spaced_repetition import SpacedRepetitionScheduler
from tutor_pipeline.pdf_processing.extractor import TextExtractor
from tutor_pipeline.processing.pipeline import DocumentPipeline
from tutor_pipeline.processing.queue import BackgroundQueue
from tutor_pipeline.storage.memory import InMemoryRepository
from tutor_pipeline.storage.repository import Repository
from tutor_pipeline.storage.sql import SQLRepository

logger = structlog.get_logger()

# Global instances
_repository: Optional[Repository] = None
_completion_client: Optional[CompletionClient] = None


async def get_repository() -> Repository:
    """Get the configured repository, creating tables on first use."""
    global _repository

    if _repository is None:
        try:
            if settings.uses_memory_storage():
                repository = InMemoryRepository()
            else:
                repository = SQLRepository(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
            await repository.init()
            _repository = repository
            logger.info("Repository ready", backend=type(repository).__name__)
        except Exception as e:
            logger.error("Failed to initialize repository", error=str(e))
            raise

    return _repository


def get_completion_client() -> CompletionClient:
    """Get the text-completion client instance."""
    global _completion_client

    if _completion_client is None:
        _completion_client = OpenAICompletionClient()
        logger.info("Completion client initialized", model=settings.OPENAI_MODEL)

    return _completion_client


def build_services(repository: Repository, completion_client: CompletionClient, text_extractor=None, clock=None):
    """Wire the pipeline and learner service around shared collaborators."""
    scheduler = SpacedRepetitionScheduler(repository, clock=clock)
    queue = BackgroundQueue(max_concurrent=settings.MAX_CONCURRENT_JOBS)

    pipeline = DocumentPipeline(
        repository=repository,
        text_extractor=text_extractor or TextExtractor(),
        concept_extractor=ConceptExtractor(completion_client),
        exercise_generator=ExerciseGenerator(completion_client),
        scheduler=scheduler,
        queue=queue,
        settings=settings,
    )
    learner = LearnerService(
        repository=repository,
        scheduler=scheduler,
        mock_exam_generator=MockExamGenerator(completion_client),
    )
    return pipeline, learner


def get_pipeline(request: Request) -> DocumentPipeline:
    return request.app.state.pipeline


def get_learner_service(request: Request) -> LearnerService:
    return request.app.state.learner


def get_current_user_id(x_user_id: Optional[int] = Header(default=None)) -> int:
    """User id supplied by the portal's session layer."""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id
