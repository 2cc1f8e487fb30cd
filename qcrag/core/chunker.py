"""
Fixed-length, overlapping text windows for embedding.
"""

from typing import List


def chunk_text(text: str, chunk_size: int = 800, chunk_overlap: int = 100) -> List[str]:
    """
    Split text into windows of at most chunk_size characters.

    Consecutive windows share chunk_overlap characters. The last window ends
    exactly at the end of the text and may be shorter than chunk_size.
    Callers must keep 0 <= chunk_overlap < chunk_size; the offset does not
    advance otherwise.

    Args:
        text: Input string
        chunk_size: Maximum window length
        chunk_overlap: Characters shared by adjacent windows

    Returns:
        Ordered list of windows (empty for empty text)
    """
    chunks = []
    start = 0
    length = len(text)
    while start < length:
        end = min(length, start + chunk_size)
        chunks.append(text[start:end])
        if end == length:
            break
        start = end - chunk_overlap
        if start < 0:
            start = 0
    return chunks
