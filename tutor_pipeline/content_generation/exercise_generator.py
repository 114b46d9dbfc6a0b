"""Generate one practice exercise per concept."""

from typing import List, Optional
import json
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from tutor_pipeline.content_generation.completion import CompletionClient
from tutor_pipeline.core.exceptions import ExerciseGenerationError
from tutor_pipeline.models.content import Concept, Exercise, ExerciseType

logger = structlog.get_logger()

MCQ_OPTION_COUNT = 4

SYSTEM_PROMPT = """You are an educational content creator. Create challenging but fair practice exercises
for students to test their understanding of concepts. Include a question, answer options,
correct answer, hints, and full solution."""

USER_PROMPT_TEMPLATE = """Create a practice exercise for the concept: "{title}"

Concept summary: {summary}

Generate a JSON object with:
- question: The question text
- type: "mcq" for multiple choice or "short_answer" for text response
- options: Array of 4 options if MCQ (null for short_answer)
- correctAnswer: The correct answer
- hint1: First hint (50% reveal)
- hint2: Second hint (formula/key phrase)
- solution: Detailed solution
- memoryHook: Mnemonic or analogy to help remember"""


class ExercisePayload(BaseModel):
    """Shape the completion service must return for an exercise."""

    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(min_length=1)
    type: ExerciseType
    options: Optional[List[str]] = None
    correct_answer: str = Field(min_length=1, alias="correctAnswer")
    hint1: str
    hint2: str
    solution: str
    memory_hook: Optional[str] = Field(default=None, alias="memoryHook")

    @model_validator(mode="after")
    def check_options(self):
        if self.type == ExerciseType.MCQ:
            if not self.options or len(self.options) != MCQ_OPTION_COUNT:
                raise ValueError(f"mcq exercises need exactly {MCQ_OPTION_COUNT} options")
        else:
            self.options = None
        return self


class ExerciseGenerator:
    """Exercise generation. Unlike concept extraction, failures propagate."""

    def __init__(self, client: CompletionClient):
        self.client = client

    async def generate_exercise(self, concept: Concept) -> Exercise:
        try:
            content = await self.client.complete(
                SYSTEM_PROMPT,
                USER_PROMPT_TEMPLATE.format(title=concept.title, summary=concept.summary),
                temperature=0.7,
                json_mode=True,
            )
            payload = ExercisePayload.model_validate(json.loads(content))
        except (ValidationError, ValueError) as e:
            logger.error("Exercise response malformed", concept_id=concept.id, error=str(e))
            raise ExerciseGenerationError(f"Malformed exercise for concept '{concept.title}': {e}") from e
        except Exception as e:
            logger.error("Exercise generation failed", concept_id=concept.id, error=str(e))
            raise ExerciseGenerationError(f"Failed to generate exercise for concept '{concept.title}'") from e

        return Exercise(
            concept_id=concept.id,
            question=payload.question,
            type=payload.type,
            options=payload.options,
            correct_answer=payload.correct_answer,
            hint1=payload.hint1,
            hint2=payload.hint2,
            solution=payload.solution,
            memory_hook=payload.memory_hook,
        )
