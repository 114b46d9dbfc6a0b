"""
Tests for the chunking logic in tutor_pipeline/pdf_processing/chunker.py
"""
import pytest

from tutor_pipeline.pdf_processing.chunker import (
    estimate_page_number,
    split_text,
    split_text_with_spans,
)


@pytest.fixture
def long_text():
    """Prose with sentence and paragraph boundaries, about 11k characters."""
    text = ("Lorem ipsum dolor sit amet, consectetur adipiscing elit. " * 50)
    text += "\n\n"
    text += ("Sed do eiusmod tempor incididunt ut labore et dolore magna aliqua. " * 50)
    text += "\n"
    text += ("Ut enim ad minim veniam, quis nostrud exercitation ullamco laboris. " * 50)
    return text


def test_empty_text_has_no_chunks():
    assert split_text("") == []
    assert split_text_with_spans("") == []


def test_short_text_is_single_unaltered_chunk():
    text = "This is a short document. It should not be split into multiple chunks."
    assert split_text(text) == [text]


def test_text_exactly_target_length_is_single_chunk():
    text = "x" * 40
    assert split_text(text, target_tokens=10) == [text]


def test_cut_without_boundaries():
    """No period or newline anywhere: chunks are cut at the raw target length."""
    spans = split_text_with_spans("a" * 100, target_tokens=10, overlap_fraction=0.2)
    # 40 characters per chunk, 8 characters of overlap
    assert spans == [(0, 40), (32, 72), (64, 100)]


def test_snaps_to_period_inside_window():
    text = "x" * 45 + "." + "y" * 100
    spans = split_text_with_spans(text, target_tokens=10, overlap_fraction=0.0)
    assert spans[0] == (0, 46)


def test_prefers_period_over_closer_newline():
    text = "x" * 40 + "\n" + "x" * 14 + "." + "y" * 100
    spans = split_text_with_spans(text, target_tokens=10, overlap_fraction=0.0)
    assert spans[0] == (0, 56)


def test_snaps_to_newline_when_no_period():
    text = "x" * 35 + "\n" + "y" * 100
    spans = split_text_with_spans(text, target_tokens=10, overlap_fraction=0.0)
    assert spans[0] == (0, 36)


def test_picks_nearest_period():
    text = "x" * 15 + "." + "x" * 34 + "." + "y" * 100
    spans = split_text_with_spans(text, target_tokens=10, overlap_fraction=0.0)
    assert spans[0] == (0, 51)


def test_boundary_outside_window_is_ignored():
    text = "x" * 75 + "." + "y" * 100
    spans = split_text_with_spans(text, target_tokens=10, overlap_fraction=0.0)
    assert spans[0] == (0, 40)


def test_deterministic(long_text):
    assert split_text(long_text) == split_text(long_text)


def test_chunks_overlap_and_cover_text(long_text):
    spans = split_text_with_spans(long_text, target_tokens=100, overlap_fraction=0.2)

    assert len(spans) > 1
    assert spans[0][0] == 0
    assert spans[-1][1] == len(long_text)
    for (start, end), (next_start, _) in zip(spans, spans[1:]):
        assert start < next_start <= end

    # Stitching the non-overlapping parts gives back the original text
    rebuilt, covered = [], 0
    for start, end in spans:
        rebuilt.append(long_text[max(start, covered):end])
        covered = end
    assert "".join(rebuilt) == long_text


def test_chunk_text_matches_spans(long_text):
    chunks = split_text(long_text, target_tokens=100)
    spans = split_text_with_spans(long_text, target_tokens=100)
    assert chunks == [long_text[s:e] for s, e in spans]


def test_chunk_sizes_stay_near_target(long_text):
    for chunk in split_text(long_text, target_tokens=100)[:-1]:
        # 400 characters +/- the 30 character boundary window
        assert 370 < len(chunk) <= 430


def test_tiny_target_still_terminates():
    text = "." * 50
    spans = split_text_with_spans(text, target_tokens=1, overlap_fraction=0.5)
    assert spans[-1][1] == len(text)
    assert all(end > start for start, end in spans)


@pytest.mark.parametrize("target_tokens, overlap", [(0, 0.2), (-5, 0.2), (10, 1.0), (10, -0.1)])
def test_invalid_parameters(target_tokens, overlap):
    with pytest.raises(ValueError):
        split_text("some text", target_tokens=target_tokens, overlap_fraction=overlap)


def test_estimate_page_number():
    assert [estimate_page_number(i, 4, 10) for i in range(4)] == [1, 3, 6, 8]
    assert estimate_page_number(0, 1, 3) == 1
    assert estimate_page_number(0, 2, None) is None


def test_text_ending_on_snapped_boundary_has_no_tail_chunk():
    # The period sits just past the 2000 character target, inside the window
    text = "a" * 2009 + "."
    assert split_text_with_spans(text, target_tokens=500, overlap_fraction=0.2) == [(0, 2010)]

    text = "b" * 2015 + "\n"
    assert split_text_with_spans(text, target_tokens=500, overlap_fraction=0.2) == [(0, 2016)]
