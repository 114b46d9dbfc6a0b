"""Split extracted document text into overlapping chunks for LLM calls."""

from typing import List, Optional, Tuple

CHARS_PER_TOKEN = 4
BOUNDARY_WINDOW = 30

DEFAULT_TARGET_TOKENS = 500
DEFAULT_OVERLAP_FRACTION = 0.2


def _nearest(text: str, char: str, low: int, high: int, target: int) -> Optional[int]:
    """Position of ``char`` in ``text[low:high]`` closest to ``target``."""
    best = None
    pos = text.find(char, low, high)
    while pos != -1:
        if best is None or abs(pos - target) < abs(best - target):
            best = pos
        pos = text.find(char, pos + 1, high)
    return best


def _snap_end(text: str, start: int, end: int) -> int:
    low = max(start + 1, end - BOUNDARY_WINDOW)
    high = min(len(text), end + BOUNDARY_WINDOW)

    # A period beats a newline even when the newline is closer.
    for boundary in (".", "\n"):
        pos = _nearest(text, boundary, low, high, end)
        if pos is not None:
            return pos + 1
    return end


def split_text_with_spans(
    text: str,
    target_tokens: int = DEFAULT_TARGET_TOKENS,
    overlap_fraction: float = DEFAULT_OVERLAP_FRACTION,
) -> List[Tuple[int, int]]:
    """
    Compute chunk boundaries as ``(start, end)`` character offsets.

    Each chunk targets ``target_tokens * 4`` characters and is snapped to the
    nearest sentence end (or, failing that, line end) within 30 characters.
    Consecutive chunks overlap by ``overlap_fraction`` of the target length.
    The last chunk always ends at ``len(text)``.
    """
    if target_tokens <= 0:
        raise ValueError("target_tokens must be positive")
    if not 0.0 <= overlap_fraction < 1.0:
        raise ValueError("overlap_fraction must be in [0, 1)")

    target_chars = target_tokens * CHARS_PER_TOKEN
    overlap_chars = int(target_chars * overlap_fraction)

    spans: List[Tuple[int, int]] = []
    start = 0
    length = len(text)

    while start < length:
        end = start + target_chars
        if end >= length:
            spans.append((start, length))
            break

        end = _snap_end(text, start, end)
        spans.append((start, end))
        if end >= length:
            break
        start = max(end - overlap_chars, start + 1)

    return spans


def split_text(
    text: str,
    target_tokens: int = DEFAULT_TARGET_TOKENS,
    overlap_fraction: float = DEFAULT_OVERLAP_FRACTION,
) -> List[str]:
    """Split ``text`` into overlapping chunks. Empty text yields no chunks."""
    return [
        text[start:end]
        for start, end in split_text_with_spans(text, target_tokens, overlap_fraction)
    ]


def estimate_page_number(chunk_index: int, total_chunks: int, page_count: Optional[int]) -> Optional[int]:
    """Heuristic page for a chunk, assuming text is spread evenly over pages."""
    if not page_count or total_chunks <= 0:
        return None
    return int((chunk_index / total_chunks) * page_count) + 1
