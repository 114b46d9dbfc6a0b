"""
Tests for concept merging, prerequisite ordering and page spans.
"""
from tutor_pipeline.curriculum.graph_builder import (
    build_concept_set,
    format_page_span,
    merge_concepts,
    order_concepts,
)
from tutor_pipeline.models.content import ConceptCandidate, MergedConcept


def candidate(title, summary="", prerequisites=()):
    return ConceptCandidate(title=title, summary=summary, prerequisites=list(prerequisites))


def merged(title, prerequisites=()):
    return MergedConcept(title=title, summary="", prerequisites=list(prerequisites))


def position(ordered, title):
    return [c.title for c in ordered].index(title)


def test_merge_is_case_insensitive():
    extractions = [
        (1, [candidate("Vectors", "Short.", ["Numbers"])]),
        (2, [candidate("vectors", "A much longer summary.", ["numbers", "Geometry"])]),
    ]
    concepts = merge_concepts(extractions)

    assert len(concepts) == 1
    vectors = concepts[0]
    assert vectors.title == "Vectors"
    assert vectors.summary == "A much longer summary."
    assert vectors.prerequisites == ["Numbers", "Geometry"]
    assert vectors.page_numbers == [1, 2]


def test_merge_keeps_longer_summary_regardless_of_order():
    extractions = [
        (1, [candidate("Limits", "The long and detailed summary.")]),
        (3, [candidate("LIMITS", "Short.")]),
    ]
    assert merge_concepts(extractions)[0].summary == "The long and detailed summary."


def test_merge_drops_self_prerequisite():
    concepts = merge_concepts([(1, [candidate("Sets", "", ["sets", "Logic"])])])
    assert concepts[0].prerequisites == ["Logic"]


def test_merge_missing_page_counts_as_zero():
    concepts = merge_concepts([(None, [candidate("Sets")])])
    assert concepts[0].page_numbers == [0]


def test_merge_with_itself_is_idempotent():
    extractions = [
        (1, [candidate("Vectors", "Arrows.", []), candidate("Matrices", "Grids.", ["Vectors"])]),
        (2, [candidate("Determinants", "Scalars from matrices.", ["Matrices", "vectors"])]),
    ]
    once = merge_concepts(extractions)
    twice = merge_concepts(extractions + extractions)

    assert [c.title for c in twice] == [c.title for c in once]
    assert [c.summary for c in twice] == [c.summary for c in once]
    assert [c.prerequisites for c in twice] == [c.prerequisites for c in once]


def test_order_puts_prerequisites_first():
    concepts = [
        merged("Eigenvalues", ["Determinants", "Matrices"]),
        merged("Determinants", ["Matrices"]),
        merged("Matrices", ["Vectors"]),
        merged("Vectors"),
    ]
    ordered = order_concepts(concepts)

    assert [c.title for c in ordered] == ["Vectors", "Matrices", "Determinants", "Eigenvalues"]


def test_order_respects_every_acyclic_edge():
    concepts = [
        merged("D", ["B", "C"]),
        merged("B", ["A"]),
        merged("E"),
        merged("C", ["A"]),
        merged("A"),
        merged("F", ["E", "D"]),
    ]
    ordered = order_concepts(concepts)

    assert sorted(c.title for c in ordered) == ["A", "B", "C", "D", "E", "F"]
    for concept in concepts:
        for prereq in concept.prerequisites:
            assert position(ordered, prereq) < position(ordered, concept.title)


def test_order_is_case_insensitive_and_ignores_unknown_prerequisites():
    concepts = [merged("Matrices", ["VECTORS", "Linear Maps"]), merged("Vectors")]
    ordered = order_concepts(concepts)

    assert [c.title for c in ordered] == ["Vectors", "Matrices"]
    assert ordered[1].prerequisites == ["VECTORS", "Linear Maps"]


def test_two_node_cycle_is_tolerated():
    concepts = [merged("A", ["B"]), merged("B", ["A"])]
    ordered = order_concepts(concepts)

    assert sorted(c.title for c in ordered) == ["A", "B"]


def test_cycle_does_not_disturb_acyclic_part():
    concepts = [
        merged("X", ["Y"]),
        merged("Y", ["Z"]),
        merged("Z", ["X"]),
        merged("Base"),
        merged("Top", ["Base"]),
    ]
    ordered = order_concepts(concepts)

    assert len(ordered) == 5
    assert len({c.title for c in ordered}) == 5
    assert position(ordered, "Base") < position(ordered, "Top")


def test_long_chain_does_not_recurse():
    size = 5000
    concepts = [merged(f"C{i}", [f"C{i - 1}"] if i else []) for i in range(size)]
    ordered = order_concepts(concepts)

    assert [c.title for c in ordered] == [f"C{i}" for i in range(size)]


def test_format_page_span():
    assert format_page_span([3, 1, 3, 0, -2, 2]) == "1, 2, 3"
    assert format_page_span([]) == ""
    assert format_page_span([0, 0]) == ""


def test_build_concept_set_assigns_dense_order():
    extractions = [
        (1, [candidate("Matrices", "Grids of numbers.", ["Vectors"])]),
        (3, [candidate("Vectors", "Arrows.")]),
        (5, [candidate("matrices", "Short")]),
    ]
    concepts = build_concept_set(7, extractions)

    assert [(c.title, c.order_index) for c in concepts] == [("Vectors", 0), ("Matrices", 1)]
    assert all(c.document_id == 7 for c in concepts)
    assert concepts[1].page_span == "1, 5"
    assert concepts[0].page_span == "3"


def test_build_concept_set_empty():
    assert build_concept_set(1, [(1, []), (2, [])]) == []
