"""Generate a mock exam covering all concepts of a document."""

from typing import List
import json
import structlog
from pydantic import ValidationError

from tutor_pipeline.content_generation.completion import CompletionClient
from tutor_pipeline.core.exceptions import MockExamGenerationError, NotFoundError
from tutor_pipeline.models.content import Concept, MockExam, MockExamQuestion

logger = structlog.get_logger()

SYSTEM_PROMPT = """You are an expert exam creator. Create challenging but fair examination questions
covering a range of topics with varying difficulty levels."""

USER_PROMPT_TEMPLATE = """Create a mock exam with {question_count} questions covering these concepts:

{concept_summaries}

Generate a JSON object with an array "questions", each having:
- questionText: The question
- options: Array of 4 options (for MCQs)
- correctAnswer: The correct answer
- conceptCovered: Which concept this tests
- difficulty: "easy", "medium", or "hard" """


class MockExamGenerator:
    """Ask the completion service for a whole exam over a document's concepts."""

    def __init__(self, client: CompletionClient):
        self.client = client

    async def generate(self, document_id: int, concepts: List[Concept], question_count: int = 30) -> MockExam:
        if not concepts:
            raise NotFoundError(f"No concepts found for document {document_id}")

        concept_summaries = "\n\n".join(f"{c.title}: {c.summary}" for c in concepts)

        try:
            content = await self.client.complete(
                SYSTEM_PROMPT,
                USER_PROMPT_TEMPLATE.format(
                    question_count=question_count,
                    concept_summaries=concept_summaries,
                ),
                temperature=0.7,
                json_mode=True,
            )
            payload = json.loads(content)
            if not isinstance(payload, dict) or not isinstance(payload.get("questions"), list):
                raise ValueError("Expected an object with a 'questions' array")
            questions = [MockExamQuestion.model_validate(q) for q in payload["questions"]]
        except (ValidationError, ValueError) as e:
            logger.error("Mock exam response malformed", document_id=document_id, error=str(e))
            raise MockExamGenerationError(f"Malformed mock exam: {e}") from e
        except Exception as e:
            logger.error("Mock exam generation failed", document_id=document_id, error=str(e))
            raise MockExamGenerationError("Failed to generate mock exam") from e

        logger.info("Generated mock exam", document_id=document_id, questions=len(questions))
        return MockExam(document_id=document_id, questions=questions)
