"""
Tests for best-effort concept extraction.
"""
import json

import pytest

from tutor_pipeline.content_generation.concept_extractor import ConceptExtractor, parse_concepts
from tutor_pipeline.core.exceptions import CompletionError

from tests.helpers import FakeCompletionClient, concepts_json


def test_parse_wrapped_concepts():
    content = concepts_json(
        ("Vectors", "Quantities with direction.", []),
        ("Matrices", "Arrays of numbers.", ["Vectors"]),
    )
    concepts = parse_concepts(content)

    assert [c.title for c in concepts] == ["Vectors", "Matrices"]
    assert concepts[1].prerequisites == ["Vectors"]


def test_parse_bare_array():
    content = json.dumps([{"title": "Limits", "summary": "Approaching values.", "prerequisites": []}])
    assert [c.title for c in parse_concepts(content)] == ["Limits"]


def test_parse_drops_malformed_items():
    content = json.dumps({
        "concepts": [
            {"title": "  Derivatives ", "summary": "Rates of change.", "prerequisites": "Limits"},
            {"summary": "No title here"},
            {"title": "   "},
            "not an object",
            {"title": "Integrals", "prerequisites": None},
        ]
    })
    concepts = parse_concepts(content)

    assert [c.title for c in concepts] == ["Derivatives", "Integrals"]
    assert concepts[0].prerequisites == ["Limits"]
    assert concepts[1].summary == ""
    assert concepts[1].prerequisites == []


def test_parse_rejects_unexpected_shape():
    with pytest.raises(ValueError):
        parse_concepts(json.dumps({"concepts": "nope"}))
    with pytest.raises(ValueError):
        parse_concepts("not json at all")


@pytest.mark.asyncio
async def test_extract_concepts_uses_json_mode_prompt():
    client = FakeCompletionClient(lambda system, user: concepts_json(("Vectors", "Arrows.", [])))
    extractor = ConceptExtractor(client)

    concepts = await extractor.extract_concepts("Vectors have magnitude and direction.")

    assert [c.title for c in concepts] == ["Vectors"]
    assert len(client.calls) == 1
    assert "Vectors have magnitude and direction." in client.calls[0][1]


@pytest.mark.asyncio
async def test_extract_concepts_tolerates_service_error():
    def fail(system, user):
        raise CompletionError("service unavailable")

    extractor = ConceptExtractor(FakeCompletionClient(fail))
    assert await extractor.extract_concepts("Some chunk text.") == []


@pytest.mark.asyncio
async def test_extract_concepts_tolerates_garbage_response():
    extractor = ConceptExtractor(FakeCompletionClient(lambda s, u: "I cannot answer that"))
    assert await extractor.extract_concepts("Some chunk text.") == []


@pytest.mark.asyncio
async def test_blank_chunk_skips_service():
    client = FakeCompletionClient(lambda s, u: concepts_json())
    extractor = ConceptExtractor(client)

    assert await extractor.extract_concepts("   \n ") == []
    assert client.calls == []
