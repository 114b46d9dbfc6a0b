"""Merge per-chunk concept extractions and order them by prerequisite."""

from collections import deque
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from tutor_pipeline.models.content import Concept, ConceptCandidate, MergedConcept

logger = structlog.get_logger()

# (page number of the chunk, concepts extracted from it)
ChunkExtraction = Tuple[Optional[int], List[ConceptCandidate]]


class Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


def _key(title: str) -> str:
    return title.strip().lower()


def _add_prerequisites(target: List[str], own_key: str, prerequisites: Iterable[str]) -> None:
    seen = {_key(p) for p in target}
    for prereq in prerequisites:
        key = _key(prereq)
        if not key or key == own_key or key in seen:
            continue
        seen.add(key)
        target.append(prereq.strip())


def merge_concepts(extractions: Sequence[ChunkExtraction]) -> List[MergedConcept]:
    """
    Merge concepts that share a title (case-insensitively) across chunks.

    The first spelling of a title is kept, the longer summary wins, page
    numbers accumulate (a chunk without one contributes 0), and
    prerequisite lists are unioned without duplicates.
    """
    merged: Dict[str, MergedConcept] = {}

    for page_number, candidates in extractions:
        page = page_number or 0
        for candidate in candidates:
            key = _key(candidate.title)
            if not key:
                continue

            existing = merged.get(key)
            if existing is None:
                concept = MergedConcept(
                    title=candidate.title.strip(),
                    summary=candidate.summary,
                    prerequisites=[],
                    page_numbers=[page],
                )
                _add_prerequisites(concept.prerequisites, key, candidate.prerequisites)
                merged[key] = concept
                continue

            existing.page_numbers.append(page)
            if len(candidate.summary) > len(existing.summary):
                existing.summary = candidate.summary
            _add_prerequisites(existing.prerequisites, key, candidate.prerequisites)

    return list(merged.values())


def order_concepts(concepts: Sequence[MergedConcept]) -> List[MergedConcept]:
    """
    Topologically sort concepts so prerequisites come before dependents.

    Depth-first, reverse post-order. A node reached while still in progress
    closes a cycle and is skipped, so cyclic claims never fail the sort;
    every concept still appears exactly once. Prerequisites that name no
    known concept are ignored.
    """
    index_of = {_key(c.title): i for i, c in enumerate(concepts)}

    dependents: List[List[int]] = [[] for _ in concepts]
    for i, concept in enumerate(concepts):
        for prereq in concept.prerequisites:
            j = index_of.get(_key(prereq))
            if j is not None and j != i:
                dependents[j].append(i)

    marks = [Mark.UNVISITED] * len(concepts)
    result: deque = deque()

    for root in range(len(concepts)):
        if marks[root] is not Mark.UNVISITED:
            continue

        marks[root] = Mark.IN_PROGRESS
        stack = [(root, iter(dependents[root]))]
        while stack:
            node, children = stack[-1]
            for child in children:
                if marks[child] is Mark.UNVISITED:
                    marks[child] = Mark.IN_PROGRESS
                    stack.append((child, iter(dependents[child])))
                    break
                if marks[child] is Mark.IN_PROGRESS:
                    logger.debug(
                        "Prerequisite cycle skipped",
                        concept=concepts[node].title,
                        dependent=concepts[child].title,
                    )
            else:
                stack.pop()
                marks[node] = Mark.DONE
                result.appendleft(node)

    return [concepts[i] for i in result]


def format_page_span(page_numbers: Iterable[int]) -> str:
    """Sorted, de-duplicated positive page numbers joined with ', '."""
    pages = sorted({p for p in page_numbers if p > 0})
    return ", ".join(str(p) for p in pages)


def build_concept_set(document_id: int, extractions: Sequence[ChunkExtraction]) -> List[Concept]:
    """Merge, order and index concepts ready for persistence."""
    ordered = order_concepts(merge_concepts(extractions))

    concepts = [
        Concept(
            document_id=document_id,
            title=concept.title,
            summary=concept.summary,
            prerequisites=list(concept.prerequisites),
            order_index=i,
            page_span=format_page_span(concept.page_numbers),
        )
        for i, concept in enumerate(ordered)
    ]

    logger.info("Built concept set", document_id=document_id, concepts=len(concepts))
    return concepts
