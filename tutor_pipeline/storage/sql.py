"""SQLAlchemy-backed repository (PostgreSQL via asyncpg, SQLite via aiosqlite)."""

from datetime import date
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    select,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
import structlog

from tutor_pipeline.core.exceptions import NotFoundError
from tutor_pipeline.models.content import (
    Concept,
    Document,
    DocumentChunk,
    Exercise,
    SpacedRepetitionStat,
)
from tutor_pipeline.storage.repository import Repository

logger = structlog.get_logger()


class Base(DeclarativeBase):
    pass


class DocumentRow(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(32), nullable=False)
    file_path = Column(Text, nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    page_count = Column(Integer)
    status = Column(String(16), nullable=False, default="processing")
    processing_error = Column(Text)
    created_at = Column(DateTime, nullable=False)


class DocumentChunkRow(Base):
    __tablename__ = "document_chunks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    chunk_index = Column(Integer, nullable=False)
    page_number = Column(Integer)
    embedding = Column(JSON)


class ConceptRow(Base):
    __tablename__ = "concepts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    summary = Column(Text, nullable=False)
    prerequisites = Column(JSON, nullable=False, default=list)
    order_index = Column(Integer, nullable=False)
    page_span = Column(String(255), nullable=False, default="")


class ExerciseRow(Base):
    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True, autoincrement=True)
    concept_id = Column(Integer, ForeignKey("concepts.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    type = Column(String(16), nullable=False)
    options = Column(JSON)
    correct_answer = Column(Text, nullable=False)
    hint1 = Column(Text, nullable=False)
    hint2 = Column(Text, nullable=False)
    solution = Column(Text, nullable=False)
    memory_hook = Column(Text)


class SpacedRepetitionStatRow(Base):
    __tablename__ = "spaced_repetition_stats"
    __table_args__ = (UniqueConstraint("user_id", "concept_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    concept_id = Column(Integer, ForeignKey("concepts.id", ondelete="CASCADE"), nullable=False, index=True)
    ease_factor = Column(Integer, nullable=False, default=250)
    interval = Column(Integer, nullable=False, default=1)
    next_review_date = Column(Date, nullable=False, index=True)
    attempts = Column(Integer, nullable=False, default=0)
    correct_attempts = Column(Integer, nullable=False, default=0)
    last_reviewed_at = Column(DateTime)


def _values(record) -> dict:
    """Column values for a pydantic record, enums flattened to their values."""
    data = record.model_dump(exclude={"id"})
    for key, value in data.items():
        if hasattr(value, "value"):
            data[key] = value.value
    return data


class SQLRepository(Repository):
    """One short-lived session per call; each write commits on its own."""

    def __init__(self, database_url: str, echo: bool = False):
        self.engine = create_async_engine(database_url, echo=echo)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def init(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured", url=self.engine.url.render_as_string(hide_password=True))

    async def close(self) -> None:
        await self.engine.dispose()

    async def _add(self, row, model_cls):
        async with self.session_factory() as session:
            session.add(row)
            await session.commit()
            return model_cls.model_validate(row, from_attributes=True)

    async def _get(self, row_cls, model_cls, row_id: int):
        async with self.session_factory() as session:
            row = await session.get(row_cls, row_id)
            return model_cls.model_validate(row, from_attributes=True) if row else None

    async def _list(self, stmt, model_cls) -> list:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [model_cls.model_validate(row, from_attributes=True) for row in result.scalars().all()]

    # Documents

    async def add_document(self, document: Document) -> Document:
        return await self._add(DocumentRow(**_values(document)), Document)

    async def get_document(self, document_id: int) -> Optional[Document]:
        return await self._get(DocumentRow, Document, document_id)

    async def list_documents(self, user_id: int) -> List[Document]:
        stmt = (
            select(DocumentRow)
            .where(DocumentRow.user_id == user_id)
            .order_by(DocumentRow.created_at.desc(), DocumentRow.id.desc())
        )
        return await self._list(stmt, Document)

    async def update_document(self, document_id: int, **fields) -> Document:
        async with self.session_factory() as session:
            row = await session.get(DocumentRow, document_id)
            if row is None:
                raise NotFoundError(f"Document {document_id} not found")
            for key, value in fields.items():
                setattr(row, key, value.value if hasattr(value, "value") else value)
            await session.commit()
            return Document.model_validate(row, from_attributes=True)

    # Chunks

    async def add_chunk(self, chunk: DocumentChunk) -> DocumentChunk:
        return await self._add(DocumentChunkRow(**_values(chunk)), DocumentChunk)

    async def list_chunks(self, document_id: int) -> List[DocumentChunk]:
        stmt = (
            select(DocumentChunkRow)
            .where(DocumentChunkRow.document_id == document_id)
            .order_by(DocumentChunkRow.chunk_index)
        )
        return await self._list(stmt, DocumentChunk)

    # Concepts

    async def add_concept(self, concept: Concept) -> Concept:
        return await self._add(ConceptRow(**_values(concept)), Concept)

    async def get_concept(self, concept_id: int) -> Optional[Concept]:
        return await self._get(ConceptRow, Concept, concept_id)

    async def list_concepts(self, document_id: int) -> List[Concept]:
        stmt = (
            select(ConceptRow)
            .where(ConceptRow.document_id == document_id)
            .order_by(ConceptRow.order_index, ConceptRow.id)
        )
        return await self._list(stmt, Concept)

    # Exercises

    async def add_exercise(self, exercise: Exercise) -> Exercise:
        return await self._add(ExerciseRow(**_values(exercise)), Exercise)

    async def get_exercise(self, exercise_id: int) -> Optional[Exercise]:
        return await self._get(ExerciseRow, Exercise, exercise_id)

    async def list_exercises(self, concept_id: int) -> List[Exercise]:
        stmt = select(ExerciseRow).where(ExerciseRow.concept_id == concept_id).order_by(ExerciseRow.id)
        return await self._list(stmt, Exercise)

    # Spaced repetition

    async def add_stat(self, stat: SpacedRepetitionStat) -> SpacedRepetitionStat:
        return await self._add(SpacedRepetitionStatRow(**_values(stat)), SpacedRepetitionStat)

    async def get_stat(self, user_id: int, concept_id: int) -> Optional[SpacedRepetitionStat]:
        stmt = select(SpacedRepetitionStatRow).where(
            SpacedRepetitionStatRow.user_id == user_id,
            SpacedRepetitionStatRow.concept_id == concept_id,
        )
        stats = await self._list(stmt, SpacedRepetitionStat)
        return stats[0] if stats else None

    async def update_stat(self, stat: SpacedRepetitionStat) -> SpacedRepetitionStat:
        async with self.session_factory() as session:
            row = await session.get(SpacedRepetitionStatRow, stat.id)
            if row is None:
                raise NotFoundError(f"Spaced repetition stat {stat.id} not found")
            for key, value in _values(stat).items():
                setattr(row, key, value)
            await session.commit()
            return SpacedRepetitionStat.model_validate(row, from_attributes=True)

    async def list_due_concepts(self, user_id: int, today: date) -> List[Concept]:
        stmt = (
            select(ConceptRow)
            .join(SpacedRepetitionStatRow, SpacedRepetitionStatRow.concept_id == ConceptRow.id)
            .where(
                SpacedRepetitionStatRow.user_id == user_id,
                SpacedRepetitionStatRow.next_review_date <= today,
            )
            .order_by(
                SpacedRepetitionStatRow.next_review_date,
                ConceptRow.document_id,
                ConceptRow.order_index,
            )
        )
        return await self._list(stmt, Concept)
