"""Shared fixtures: in-memory storage, scripted completion service, fixed clock."""

import pytest

from tutor_pipeline.content_generation.concept_extractor import ConceptExtractor
from tutor_pipeline.content_generation.exercise_generator import ExerciseGenerator
from tutor_pipeline.content_generation.mock_exam import MockExamGenerator
from tutor_pipeline.core.config import settings
from tutor_pipeline.curriculum.service import LearnerService
from tutor_pipeline.curriculum.spaced_repetition import SpacedRepetitionScheduler
from tutor_pipeline.processing.pipeline import DocumentPipeline
from tutor_pipeline.processing.queue import BackgroundQueue
from tutor_pipeline.storage.memory import InMemoryRepository

from tests.helpers import FakeCompletionClient, FakeTextExtractor, FixedClock, curriculum_handler


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def completion_client():
    return FakeCompletionClient(curriculum_handler)


@pytest.fixture
def text_extractor():
    return FakeTextExtractor()


@pytest.fixture
def scheduler(repository, clock):
    return SpacedRepetitionScheduler(repository, clock=clock)


@pytest.fixture
def pipeline(repository, text_extractor, completion_client, scheduler):
    return DocumentPipeline(
        repository=repository,
        text_extractor=text_extractor,
        concept_extractor=ConceptExtractor(completion_client),
        exercise_generator=ExerciseGenerator(completion_client),
        scheduler=scheduler,
        queue=BackgroundQueue(max_concurrent=2),
        settings=settings,
    )


@pytest.fixture
def learner(repository, scheduler, completion_client):
    return LearnerService(
        repository=repository,
        scheduler=scheduler,
        mock_exam_generator=MockExamGenerator(completion_client),
    )
