"""Test doubles: scripted completion service, fake text extractor, fixed clock."""

import json
from datetime import date, datetime
from typing import Callable, List, Tuple

from tutor_pipeline.content_generation import concept_extractor, exercise_generator
from tutor_pipeline.content_generation.completion import CompletionClient
from tutor_pipeline.pdf_processing.extractor import ExtractedText

TODAY = date(2025, 3, 10)

# Two chunks at the default chunk size: [0, 2000) and [1600, 3000).
# ALPHA only appears in the first, the second holds only BETA.
TWO_CHUNK_TEXT = ("ALPHA " * 267)[:1600] + ("BETA " * 280)[:1400]


class FixedClock:
    def __init__(self, today: date = TODAY):
        self._today = today

    def today(self) -> date:
        return self._today

    def now(self) -> datetime:
        return datetime.combine(self._today, datetime.min.time()).replace(hour=9)


class FakeCompletionClient(CompletionClient):
    """Answers with a handler and records every prompt pair."""

    def __init__(self, handler: Callable[[str, str], str]):
        self.handler = handler
        self.calls: List[Tuple[str, str]] = []

    async def complete(self, system_prompt, user_prompt, *, temperature=0.7, json_mode=False):
        self.calls.append((system_prompt, user_prompt))
        return self.handler(system_prompt, user_prompt)


class FakeTextExtractor:
    def __init__(self, text: str = TWO_CHUNK_TEXT, page_count: int = 4, error: Exception = None):
        self.text = text
        self.page_count = page_count
        self.error = error
        self.paths: List[str] = []

    async def extract(self, file_path: str) -> ExtractedText:
        self.paths.append(file_path)
        if self.error is not None:
            raise self.error
        return ExtractedText(text=self.text, page_count=self.page_count)


def concepts_json(*concepts) -> str:
    return json.dumps({
        "concepts": [
            {"title": title, "summary": summary, "prerequisites": list(prereqs)}
            for title, summary, prereqs in concepts
        ]
    })


def exercise_json(title: str, **overrides) -> str:
    payload = {
        "question": f"Which statement about {title} is true?",
        "type": "mcq",
        "options": [f"{title} A", f"{title} B", f"{title} C", f"{title} D"],
        "correctAnswer": f"{title} B",
        "hint1": "Think about the definition.",
        "hint2": "Recall the key property.",
        "solution": f"{title} B follows from the definition.",
        "memoryHook": f"{title} is like an arrow.",
    }
    payload.update(overrides)
    return json.dumps(payload)


def curriculum_handler(system_prompt: str, user_prompt: str) -> str:
    """Vectors in the ALPHA chunk, Matrices (needing Vectors) in the BETA chunk."""
    if system_prompt == concept_extractor.SYSTEM_PROMPT:
        text = user_prompt.split("Text:\n", 1)[1]
        if "ALPHA" in text:
            return concepts_json(("Vectors", "Quantities with magnitude and direction.", []))
        if "BETA" in text:
            return concepts_json(("Matrices", "Rectangular arrays of numbers.", ["Vectors"]))
        return concepts_json()
    if system_prompt == exercise_generator.SYSTEM_PROMPT:
        title = user_prompt.split('"')[1]
        return exercise_json(title)
    return json.dumps({"questions": []})


