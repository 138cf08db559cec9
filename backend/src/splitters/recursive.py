from llama_index.core.schema import Document as LlamaDocument

from .base import BaseTextSplitter

DEFAULT_SEPARATORS = ["\n\n", "\n", " ", ""]


class RecursiveTextSplitter(BaseTextSplitter):
    """Character splitter that prefers paragraph, line, then word boundaries.

    The text is first cut into pieces no longer than
    ``chunk_size - chunk_overlap``: a span is split on the first separator
    (in priority order) that occurs in it, the separator staying attached to
    the end of the preceding piece, and any piece still too long is split
    again with the remaining separators. The empty separator slices by
    characters. Pieces are then packed greedily into chunks.

    Every chunk after the first starts with exactly the last
    ``chunk_overlap`` characters of the chunk before it, so dropping that
    prefix from each later chunk and concatenating gives back the original
    text unchanged. Text no longer than ``chunk_size`` is one chunk.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        separators: list[str] | None = None,
    ):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0:
            raise ValueError(f"chunk_overlap must be >= 0, got {chunk_overlap}")
        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be smaller than "
                f"chunk_size ({chunk_size})"
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.separators = list(separators) if separators is not None else list(DEFAULT_SEPARATORS)
        self._step = chunk_size - chunk_overlap

    def split_documents(self, documents: list[LlamaDocument]) -> list["Chunk"]:
        """Split documents in order; each chunk gets its own metadata copy."""
        from models.chunk import Chunk

        chunks = []
        for document in documents:
            text = document.text
            metadata = dict(document.metadata) if document.metadata else {}
            source = str(metadata.get("source", "unknown"))

            for start, end in self.split_text_spans(text):
                chunks.append(
                    Chunk(
                        text=text[start:end],
                        source=source,
                        metadata=dict(metadata),
                    )
                )

        return chunks

    def split_text(self, text: str) -> list[str]:
        return [text[start:end] for start, end in self.split_text_spans(text)]

    def split_text_spans(self, text: str) -> list[tuple[int, int]]:
        """Return (start, end) offsets of each chunk within ``text``."""
        if not text:
            return []
        if len(text) <= self.chunk_size:
            return [(0, len(text))]

        pieces = self._split_span(text, 0, len(text), 0)
        return self._pack(pieces)

    def _split_span(
        self, text: str, start: int, end: int, separator_index: int
    ) -> list[tuple[int, int]]:
        if end - start <= self._step:
            return [(start, end)]

        separator = ""
        next_index = len(self.separators)
        for i in range(separator_index, len(self.separators)):
            candidate = self.separators[i]
            if candidate == "" or text.find(candidate, start, end) != -1:
                separator = candidate
                next_index = i + 1
                break

        if separator == "":
            return [
                (offset, min(offset + self._step, end))
                for offset in range(start, end, self._step)
            ]

        pieces: list[tuple[int, int]] = []
        cursor = start
        while True:
            found = text.find(separator, cursor, end)
            if found == -1:
                break
            cut = found + len(separator)
            pieces.append((cursor, cut))
            cursor = cut
        if cursor < end:
            pieces.append((cursor, end))

        result: list[tuple[int, int]] = []
        for piece_start, piece_end in pieces:
            if piece_end - piece_start <= self._step:
                result.append((piece_start, piece_end))
            else:
                result.extend(
                    self._split_span(text, piece_start, piece_end, next_index)
                )
        return result

    def _pack(self, pieces: list[tuple[int, int]]) -> list[tuple[int, int]]:
        # new_start marks where the text not yet covered by an earlier chunk begins
        spans: list[tuple[int, int]] = []
        new_start = 0
        end = 0
        limit = self.chunk_size

        for _, piece_end in pieces:
            if piece_end - new_start > limit and end > new_start:
                spans.append(self._span(new_start, end, first=not spans))
                new_start = end
                limit = self._step
            end = piece_end

        spans.append(self._span(new_start, end, first=not spans))
        return spans

    def _span(self, new_start: int, end: int, first: bool) -> tuple[int, int]:
        if first:
            return (new_start, end)
        return (new_start - self.chunk_overlap, end)
