"""In-process repository. Used for tests and with DATABASE_URL=memory://."""

import itertools
from datetime import date
from typing import Dict, List, Optional, Tuple

from tutor_pipeline.core.exceptions import NotFoundError
from tutor_pipeline.models.content import (
    Concept,
    Document,
    DocumentChunk,
    Exercise,
    SpacedRepetitionStat,
)
from tutor_pipeline.storage.repository import Repository


class InMemoryRepository(Repository):
    """Dictionary tables with per-table id counters. Records are copied on the way in and out."""

    def __init__(self):
        self.documents: Dict[int, Document] = {}
        self.chunks: Dict[int, DocumentChunk] = {}
        self.concepts: Dict[int, Concept] = {}
        self.exercises: Dict[int, Exercise] = {}
        self.stats: Dict[int, SpacedRepetitionStat] = {}
        self._stat_keys: Dict[Tuple[int, int], int] = {}
        self._ids = {name: itertools.count(1) for name in ("documents", "chunks", "concepts", "exercises", "stats")}

    def _insert(self, table: str, record):
        stored = record.model_copy(update={"id": next(self._ids[table])})
        getattr(self, table)[stored.id] = stored
        return stored.model_copy()

    # Documents

    async def add_document(self, document: Document) -> Document:
        return self._insert("documents", document)

    async def get_document(self, document_id: int) -> Optional[Document]:
        document = self.documents.get(document_id)
        return document.model_copy() if document else None

    async def list_documents(self, user_id: int) -> List[Document]:
        owned = [d for d in self.documents.values() if d.user_id == user_id]
        owned.sort(key=lambda d: (d.created_at, d.id), reverse=True)
        return [d.model_copy() for d in owned]

    async def update_document(self, document_id: int, **fields) -> Document:
        if document_id not in self.documents:
            raise NotFoundError(f"Document {document_id} not found")
        updated = self.documents[document_id].model_copy(update=fields)
        self.documents[document_id] = updated
        return updated.model_copy()

    # Chunks

    async def add_chunk(self, chunk: DocumentChunk) -> DocumentChunk:
        return self._insert("chunks", chunk)

    async def list_chunks(self, document_id: int) -> List[DocumentChunk]:
        chunks = [c for c in self.chunks.values() if c.document_id == document_id]
        return [c.model_copy() for c in sorted(chunks, key=lambda c: c.chunk_index)]

    # Concepts

    async def add_concept(self, concept: Concept) -> Concept:
        return self._insert("concepts", concept)

    async def get_concept(self, concept_id: int) -> Optional[Concept]:
        concept = self.concepts.get(concept_id)
        return concept.model_copy() if concept else None

    async def list_concepts(self, document_id: int) -> List[Concept]:
        concepts = [c for c in self.concepts.values() if c.document_id == document_id]
        return [c.model_copy() for c in sorted(concepts, key=lambda c: (c.order_index, c.id))]

    # Exercises

    async def add_exercise(self, exercise: Exercise) -> Exercise:
        return self._insert("exercises", exercise)

    async def get_exercise(self, exercise_id: int) -> Optional[Exercise]:
        exercise = self.exercises.get(exercise_id)
        return exercise.model_copy() if exercise else None

    async def list_exercises(self, concept_id: int) -> List[Exercise]:
        return [e.model_copy() for e in self.exercises.values() if e.concept_id == concept_id]

    # Spaced repetition

    async def add_stat(self, stat: SpacedRepetitionStat) -> SpacedRepetitionStat:
        key = (stat.user_id, stat.concept_id)
        if key in self._stat_keys:
            raise ValueError(f"Stat already exists for user {stat.user_id} and concept {stat.concept_id}")
        stored = self._insert("stats", stat)
        self._stat_keys[key] = stored.id
        return stored

    async def get_stat(self, user_id: int, concept_id: int) -> Optional[SpacedRepetitionStat]:
        stat_id = self._stat_keys.get((user_id, concept_id))
        return self.stats[stat_id].model_copy() if stat_id is not None else None

    async def update_stat(self, stat: SpacedRepetitionStat) -> SpacedRepetitionStat:
        if stat.id not in self.stats:
            raise NotFoundError(f"Spaced repetition stat {stat.id} not found")
        self.stats[stat.id] = stat.model_copy()
        return stat.model_copy()

    async def list_due_concepts(self, user_id: int, today: date) -> List[Concept]:
        due = [
            s for s in self.stats.values()
            if s.user_id == user_id and s.next_review_date <= today and s.concept_id in self.concepts
        ]
        concepts = [(s.next_review_date, self.concepts[s.concept_id]) for s in due]
        concepts.sort(key=lambda pair: (pair[0], pair[1].document_id, pair[1].order_index))
        return [c.model_copy() for _, c in concepts]
