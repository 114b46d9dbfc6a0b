"""Content data models."""

from typing import List, Optional
from datetime import date, datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DocumentStatus(str, Enum):
    """Document processing status."""
    PROCESSING = "processing"
    INDEXED = "indexed"
    FAILED = "failed"


class ExerciseType(str, Enum):
    """Kinds of practice exercise."""
    MCQ = "mcq"
    SHORT_ANSWER = "short_answer"


class Document(BaseModel):
    """An uploaded study document."""
    id: Optional[int] = None
    user_id: int
    title: str
    file_name: str
    file_type: str
    file_path: str
    file_size: int = 0
    page_count: Optional[int] = None
    status: DocumentStatus = DocumentStatus.PROCESSING
    processing_error: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class DocumentChunk(BaseModel):
    """Bounded text segment of a document."""
    id: Optional[int] = None
    document_id: int
    content: str
    chunk_index: int
    page_number: Optional[int] = None
    embedding: Optional[List[float]] = None


class ConceptCandidate(BaseModel):
    """One concept as claimed by the extraction service for a single chunk."""
    title: str = Field(min_length=1)
    summary: str = ""
    prerequisites: List[str] = Field(default_factory=list)


class MergedConcept(ConceptCandidate):
    """Concept merged across chunks, with the pages it was drawn from."""
    page_numbers: List[int] = Field(default_factory=list)


class Concept(BaseModel):
    """A distinct educational idea positioned in the learning sequence."""
    id: Optional[int] = None
    document_id: int
    title: str
    summary: str
    prerequisites: List[str] = Field(default_factory=list)
    order_index: int
    page_span: str = ""


class Exercise(BaseModel):
    """Practice item tied to one concept."""
    id: Optional[int] = None
    concept_id: int
    question: str
    type: ExerciseType
    options: Optional[List[str]] = None
    correct_answer: str
    hint1: str
    hint2: str
    solution: str
    memory_hook: Optional[str] = None


class SpacedRepetitionStat(BaseModel):
    """Review schedule for one (user, concept) pair."""
    id: Optional[int] = None
    user_id: int
    concept_id: int
    ease_factor: int = 250
    interval: int = 1
    next_review_date: date
    attempts: int = 0
    correct_attempts: int = 0
    last_reviewed_at: Optional[datetime] = None


class ConceptRef(BaseModel):
    """Lightweight pointer to a neighbouring concept."""
    id: int
    title: str


class ConceptNavigation(BaseModel):
    """A concept with its exercises and its neighbours in learning order."""
    concept: Concept
    exercises: List[Exercise] = Field(default_factory=list)
    previous: Optional[ConceptRef] = None
    next: Optional[ConceptRef] = None


class AnswerSubmission(BaseModel):
    answer: Optional[str] = None


class AnswerResult(BaseModel):
    is_correct: bool
    correct_answer: str
    solution: str


class UploadAccepted(BaseModel):
    document_id: int
    status: DocumentStatus
    message: str


class DocumentDetail(BaseModel):
    document: Document
    concepts: List[Concept] = Field(default_factory=list)


class MockExamRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_id: int = Field(alias="documentId")
    question_count: Optional[int] = Field(default=None, ge=1, le=100, alias="questionCount")


class MockExamQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_text: str = Field(alias="questionText")
    options: Optional[List[str]] = None
    correct_answer: str = Field(alias="correctAnswer")
    concept_covered: Optional[str] = Field(default=None, alias="conceptCovered")
    difficulty: Optional[str] = None


class MockExam(BaseModel):
    document_id: int
    questions: List[MockExamQuestion] = Field(default_factory=list)
