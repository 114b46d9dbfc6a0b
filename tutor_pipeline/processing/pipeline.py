"""Document-to-curriculum pipeline orchestration."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import structlog

from tutor_pipeline.content_generation.concept_extractor import ConceptExtractor
from tutor_pipeline.content_generation.exercise_generator import ExerciseGenerator
from tutor_pipeline.core.config import Settings, settings as default_settings
from tutor_pipeline.core.exceptions import DocumentProcessingError, ExerciseGenerationError
from tutor_pipeline.curriculum.graph_builder import build_concept_set
from tutor_pipeline.curriculum.spaced_repetition import SpacedRepetitionScheduler
from tutor_pipeline.models.content import Document, DocumentChunk, DocumentStatus
from tutor_pipeline.pdf_processing.chunker import estimate_page_number, split_text
from tutor_pipeline.pdf_processing.extractor import TextExtractor
from tutor_pipeline.processing.queue import BackgroundQueue
from tutor_pipeline.storage.repository import Repository

logger = structlog.get_logger()


@dataclass
class CurriculumReport:
    """Outcome of the post-upload stages for one document."""
    document_id: int
    chunks: int = 0
    concepts: int = 0
    exercises: int = 0
    failed_concepts: List[int] = field(default_factory=list)
    review_initialized: bool = False


class DocumentPipeline:
    """
    Upload -> extract -> chunk (synchronous), then concepts -> exercises ->
    review schedule (background).

    The stages share no transaction: a document can be ``indexed`` with
    some or no concepts if the background stages fail part way.
    """

    def __init__(
        self,
        repository: Repository,
        text_extractor: TextExtractor,
        concept_extractor: ConceptExtractor,
        exercise_generator: ExerciseGenerator,
        scheduler: SpacedRepetitionScheduler,
        queue: BackgroundQueue,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.text_extractor = text_extractor
        self.concept_extractor = concept_extractor
        self.exercise_generator = exercise_generator
        self.scheduler = scheduler
        self.queue = queue
        self.settings = settings or default_settings

    async def upload_and_process(
        self,
        user_id: int,
        title: str,
        file_name: str,
        file_path: str,
        file_size: int = 0,
    ) -> int:
        """
        Register an uploaded file and index it.

        Indexing runs before returning; concept extraction, exercise
        generation and review initialization are queued and never report
        back. Raises DocumentProcessingError if indexing fails.
        """
        document = await self.repository.add_document(
            Document(
                user_id=user_id,
                title=title,
                file_name=file_name,
                file_type=Path(file_name).suffix.lstrip(".").lower(),
                file_path=file_path,
                file_size=file_size,
                status=DocumentStatus.PROCESSING,
            )
        )
        log = logger.bind(document_id=document.id, user_id=user_id)
        log.info("Document registered", title=title, file_type=document.file_type)

        await self.index_document(document)

        self.queue.submit(
            "build_curriculum",
            lambda: self.build_curriculum(user_id, document.id),
            document_id=document.id,
        )
        return document.id

    async def index_document(self, document: Document) -> List[DocumentChunk]:
        """Extract text, persist chunks and mark the document indexed."""
        log = logger.bind(document_id=document.id)
        await self.repository.update_document(document.id, status=DocumentStatus.PROCESSING)

        try:
            extracted = await self.text_extractor.extract(document.file_path)
            await self.repository.update_document(document.id, page_count=extracted.page_count)

            texts = split_text(
                extracted.text,
                self.settings.CHUNK_TARGET_TOKENS,
                self.settings.CHUNK_OVERLAP_FRACTION,
            )
            chunks = []
            for i, text in enumerate(texts):
                chunk = DocumentChunk(
                    document_id=document.id,
                    content=text,
                    chunk_index=i,
                    page_number=estimate_page_number(i, len(texts), extracted.page_count),
                )
                chunks.append(await self.repository.add_chunk(chunk))
        except Exception as e:
            log.error("Document indexing failed", error=str(e))
            await self.repository.update_document(
                document.id,
                status=DocumentStatus.FAILED,
                processing_error=str(e),
            )
            raise DocumentProcessingError(document.id, str(e)) from e

        await self.repository.update_document(document.id, status=DocumentStatus.INDEXED)
        log.info("Document indexed", chunks=len(chunks), pages=extracted.page_count)
        return chunks

    async def build_curriculum(self, user_id: int, document_id: int) -> CurriculumReport:
        """Extract and order concepts, generate exercises, initialize review."""
        log = logger.bind(document_id=document_id, user_id=user_id)
        report = CurriculumReport(document_id=document_id)

        chunks = await self.repository.list_chunks(document_id)
        report.chunks = len(chunks)
        if not chunks:
            log.warning("No chunks found for document")
            return report

        # One call at a time to keep load on the completion service bounded
        extractions = []
        for chunk in chunks:
            candidates = await self.concept_extractor.extract_concepts(chunk.content)
            extractions.append((chunk.page_number, candidates))

        concepts = []
        for concept in build_concept_set(document_id, extractions):
            concepts.append(await self.repository.add_concept(concept))
        report.concepts = len(concepts)
        log.info("Concepts stored", concepts=len(concepts))

        if not concepts:
            log.warning("No concepts extracted; document stays indexed without a curriculum")
            return report

        for concept in concepts:
            try:
                exercise = await self.exercise_generator.generate_exercise(concept)
            except ExerciseGenerationError as e:
                log.error("Skipping exercise for concept", concept_id=concept.id, error=str(e))
                report.failed_concepts.append(concept.id)
                continue
            await self.repository.add_exercise(exercise)
            report.exercises += 1

        await self.scheduler.initialize(user_id, document_id)
        report.review_initialized = True

        log.info(
            "Curriculum built",
            concepts=report.concepts,
            exercises=report.exercises,
            failed_concepts=len(report.failed_concepts),
        )
        return report
