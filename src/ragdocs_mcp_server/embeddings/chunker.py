"""
Word-boundary text chunking.
"""

from __future__ import annotations

from typing import List

DEFAULT_CHUNK_SIZE = 1000


def chunk_text(text: str, max_size: int = DEFAULT_CHUNK_SIZE) -> List[str]:
    """
    Split text into order-preserving chunks of whole words.

    Words are accumulated until the space-joined chunk reaches ``max_size``
    characters, at which point the chunk is closed. The bound is approximate:
    a single word longer than ``max_size`` still yields one oversized chunk,
    and words are never split.

    Returns an empty list for text with no words.
    """
    if max_size <= 0:
        raise ValueError("max_size must be positive.")

    chunks: List[str] = []
    current: List[str] = []
    current_length = 0

    for word in text.split():
        # Length of " ".join(current) after appending this word.
        current_length += len(word) + (1 if current else 0)
        current.append(word)

        if current_length >= max_size:
            chunks.append(" ".join(current))
            current = []
            current_length = 0

    if current:
        chunks.append(" ".join(current))

    return chunks
