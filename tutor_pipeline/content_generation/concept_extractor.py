"""Extract (title, summary, prerequisites) concept triples from a text chunk."""

from typing import Any, List
import json
import structlog
from pydantic import ValidationError

from tutor_pipeline.content_generation.completion import CompletionClient
from tutor_pipeline.models.content import ConceptCandidate

logger = structlog.get_logger()

SYSTEM_PROMPT = """You are an expert educational content analyzer. Extract educational concepts from text chunks.
For each concept, provide a title, summary, and list of prerequisite concepts."""

USER_PROMPT_TEMPLATE = """Extract educational concepts from the following text. Return a JSON object of the form:
{{
  "concepts": [
    {{
      "title": "Concept Name (keep short and precise)",
      "summary": "Brief explanation of the concept (2-3 sentences)",
      "prerequisites": ["Prerequisite Concept 1", "Prerequisite Concept 2"]
    }}
  ]
}}

Prerequisites must be other concepts mentioned or implied in the same text.

Text:
{chunk_text}"""


def parse_concepts(content: str) -> List[ConceptCandidate]:
    """
    Decode a completion response into concept candidates.

    Accepts ``{"concepts": [...]}`` or a bare array. Items that do not match
    the expected shape are dropped individually. Raises ValueError when the
    payload as a whole is not usable.
    """
    payload: Any = json.loads(content)
    if isinstance(payload, dict):
        payload = payload.get("concepts", [])
    if not isinstance(payload, list):
        raise ValueError("Expected a list of concepts")

    concepts = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        prerequisites = item.get("prerequisites") or []
        if isinstance(prerequisites, str):
            prerequisites = [prerequisites]
        try:
            candidate = ConceptCandidate(
                title=str(item.get("title") or "").strip(),
                summary=str(item.get("summary") or "").strip(),
                prerequisites=[str(p).strip() for p in prerequisites if str(p).strip()],
            )
        except ValidationError:
            continue
        concepts.append(candidate)
    return concepts


class ConceptExtractor:
    """Best-effort concept extraction: failures yield no concepts."""

    def __init__(self, client: CompletionClient):
        self.client = client

    async def extract_concepts(self, chunk_text: str) -> List[ConceptCandidate]:
        if not chunk_text.strip():
            return []

        try:
            content = await self.client.complete(
                SYSTEM_PROMPT,
                USER_PROMPT_TEMPLATE.format(chunk_text=chunk_text),
                temperature=0.5,
                json_mode=True,
            )
            concepts = parse_concepts(content)
        except Exception as e:
            logger.warning("Concept extraction failed for chunk", error=str(e))
            return []

        logger.debug("Extracted concepts from chunk", count=len(concepts))
        return concepts
