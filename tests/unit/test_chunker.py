"""Unit tests for the recursive TextChunker."""

from __future__ import annotations

import pytest

from clarity.services.ingestion.chunker import TextChunker


class TestTextChunker:
    def test_blank_text_returns_no_chunks(self) -> None:
        chunker = TextChunker()
        assert chunker.split("") == []
        assert chunker.split("   \n\n  ") == []

    def test_short_text_is_single_chunk(self) -> None:
        chunker = TextChunker(chunk_size=500, overlap=50)
        assert chunker.split("  Ask for feedback early.  ") == ["Ask for feedback early."]

    def test_chunks_never_exceed_size(self) -> None:
        chunker = TextChunker(chunk_size=100, overlap=20)
        text = " ".join(f"word{i}" for i in range(400))
        chunks = chunker.split(text)
        assert len(chunks) > 1
        assert all(0 < len(chunk) <= 100 for chunk in chunks)

    def test_consecutive_chunks_overlap(self) -> None:
        chunker = TextChunker(chunk_size=60, overlap=20)
        text = " ".join(f"w{i:03d}" for i in range(100))
        chunks = chunker.split(text)
        for previous, current in zip(chunks, chunks[1:]):
            tail_word = previous.split()[-1]
            assert tail_word in current.split()

    def test_no_overlap_when_disabled(self) -> None:
        chunker = TextChunker(chunk_size=30, overlap=0)
        text = " ".join(f"w{i:03d}" for i in range(40))
        chunks = chunker.split(text)
        words = [word for chunk in chunks for word in chunk.split()]
        assert words == text.split()

    def test_all_content_preserved_in_order(self) -> None:
        chunker = TextChunker(chunk_size=80, overlap=15)
        text = " ".join(f"token{i}" for i in range(200))
        chunks = chunker.split(text)
        seen: list[str] = []
        for chunk in chunks:
            for word in chunk.split():
                if word not in seen:
                    seen.append(word)
        assert seen == text.split()

    def test_paragraph_boundaries_preferred(self) -> None:
        chunker = TextChunker(chunk_size=60, overlap=0)
        first = "First paragraph about leadership habits."
        second = "Second paragraph about giving feedback."
        chunks = chunker.split(f"{first}\n\n{second}")
        assert chunks == [first, second]

    def test_unbroken_text_split_by_characters(self) -> None:
        chunker = TextChunker(chunk_size=10, overlap=2)
        chunks = chunker.split("x" * 35)
        assert all(len(chunk) <= 10 for chunk in chunks)
        assert sum(len(chunk) for chunk in chunks) >= 35

    @pytest.mark.parametrize(
        ("chunk_size", "overlap"),
        [(0, 0), (-5, 0), (100, 100), (100, 150), (100, -1)],
    )
    def test_invalid_parameters_rejected(self, chunk_size: int, overlap: int) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=chunk_size, overlap=overlap)
