"""Persistence interface for documents, chunks, concepts, exercises and review stats."""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from tutor_pipeline.models.content import (
    Concept,
    Document,
    DocumentChunk,
    Exercise,
    SpacedRepetitionStat,
)


class Repository(ABC):
    """
    Async CRUD over the pipeline entities.

    Identifiers are auto-incrementing integers assigned on insert; ``add_*``
    methods return the stored record with its ``id`` filled in. Every write
    touches a single row and is committed on its own.
    """

    async def init(self) -> None:
        """Prepare storage (create tables, etc.)."""

    async def close(self) -> None:
        """Release connections."""

    # Documents

    @abstractmethod
    async def add_document(self, document: Document) -> Document:
        """Insert a document."""

    @abstractmethod
    async def get_document(self, document_id: int) -> Optional[Document]:
        """Fetch a document by id."""

    @abstractmethod
    async def list_documents(self, user_id: int) -> List[Document]:
        """Documents owned by a user, newest first."""

    @abstractmethod
    async def update_document(self, document_id: int, **fields) -> Document:
        """Update selected document fields. Raises NotFoundError."""

    # Chunks

    @abstractmethod
    async def add_chunk(self, chunk: DocumentChunk) -> DocumentChunk:
        """Insert a chunk."""

    @abstractmethod
    async def list_chunks(self, document_id: int) -> List[DocumentChunk]:
        """Chunks of a document ordered by chunk_index."""

    # Concepts

    @abstractmethod
    async def add_concept(self, concept: Concept) -> Concept:
        """Insert a concept."""

    @abstractmethod
    async def get_concept(self, concept_id: int) -> Optional[Concept]:
        """Fetch a concept by id."""

    @abstractmethod
    async def list_concepts(self, document_id: int) -> List[Concept]:
        """Concepts of a document ordered by order_index."""

    # Exercises

    @abstractmethod
    async def add_exercise(self, exercise: Exercise) -> Exercise:
        """Insert an exercise."""

    @abstractmethod
    async def get_exercise(self, exercise_id: int) -> Optional[Exercise]:
        """Fetch an exercise by id."""

    @abstractmethod
    async def list_exercises(self, concept_id: int) -> List[Exercise]:
        """Exercises of a concept in insertion order."""

    # Spaced repetition

    @abstractmethod
    async def add_stat(self, stat: SpacedRepetitionStat) -> SpacedRepetitionStat:
        """Insert a review stat."""

    @abstractmethod
    async def get_stat(self, user_id: int, concept_id: int) -> Optional[SpacedRepetitionStat]:
        """Fetch the stat for a (user, concept) pair."""

    @abstractmethod
    async def update_stat(self, stat: SpacedRepetitionStat) -> SpacedRepetitionStat:
        """Persist the scheduling fields of an existing stat. Raises NotFoundError."""

    @abstractmethod
    async def list_due_concepts(self, user_id: int, today: date) -> List[Concept]:
        """Concepts whose stat for the user has next_review_date <= today."""
