"""Domain errors raised by the pipeline and learner services."""


class TutorPipelineError(Exception):
    """Base class for all service errors."""


class NotFoundError(TutorPipelineError):
    """A requested entity does not exist."""


class PermissionDeniedError(TutorPipelineError):
    """The user does not own the requested entity."""


class InvalidAnswerError(TutorPipelineError):
    """An answer submission is missing or malformed."""


class UnsupportedFileTypeError(TutorPipelineError):
    """No text extractor exists for the uploaded file type."""


class DocumentProcessingError(TutorPipelineError):
    """Text extraction or chunking failed; the document is marked failed."""

    def __init__(self, document_id: int, message: str):
        super().__init__(message)
        self.document_id = document_id


class CompletionError(TutorPipelineError):
    """The text-completion service failed or returned nothing."""


class ExerciseGenerationError(TutorPipelineError):
    """An exercise could not be generated for a concept."""


class MockExamGenerationError(TutorPipelineError):
    """A mock exam could not be generated for a document."""
