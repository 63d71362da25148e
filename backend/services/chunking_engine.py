"""Chunking engine splitting markdown into section-tagged chunks."""
import logging
import re
from typing import List, Optional

from models.chunk import Chunk
from config import CHUNK_MAX_LEN, CHUNK_OVERLAP

logger = logging.getLogger(__name__)

# Level 2 to 6 headings: "## Title" .. "###### Title"
HEADING_PATTERN = re.compile(r"^#{2,6}\s+(.+)$")
LINE_BREAK_PATTERN = re.compile(r"\r?\n")


class ChunkingEngine:
    """Segments markdown documents into chunks labelled with their section heading."""

    def __init__(self, max_len: int = CHUNK_MAX_LEN, overlap: int = CHUNK_OVERLAP):
        """
        Initialize ChunkingEngine.

        Args:
            max_len: Size in characters of the slices cut by a forced split
            overlap: Extra characters a buffer may hold beyond max_len
                before it is force-split

        Raises:
            ValueError: If max_len is not positive or overlap is negative
        """
        if max_len <= 0:
            raise ValueError("max_len must be positive")
        if overlap < 0:
            raise ValueError("overlap cannot be negative")

        self.max_len = max_len
        self.overlap = overlap

    def split(self, text: str) -> List[Chunk]:
        """
        Split markdown text into chunks.

        Lines accumulate in a buffer which is flushed as one chunk whenever a
        heading starts a new section. A buffer growing past
        max_len + overlap characters is cut into max_len-sized slices without
        regard for word boundaries.

        Args:
            text: Markdown text to split

        Returns:
            Ordered list of non-blank chunks
        """
        chunks: List[Chunk] = []
        buffer: List[str] = []
        buffer_len = 0  # length of "\n".join(buffer)
        section: Optional[str] = None

        def flush() -> None:
            nonlocal buffer, buffer_len
            if not buffer:
                return
            joined = "\n".join(buffer).strip()
            if joined:
                chunks.append(Chunk(text=joined, section=section))
            buffer = []
            buffer_len = 0

        for line in LINE_BREAK_PATTERN.split(text):
            heading = HEADING_PATTERN.match(line)
            if heading:
                flush()
                section = heading.group(1).strip() or None

            buffer_len += len(line) + (1 if buffer else 0)
            buffer.append(line)

            if buffer_len > self.max_len + self.overlap:
                joined = "\n".join(buffer)
                for start in range(0, len(joined), self.max_len):
                    part = joined[start:start + self.max_len].strip()
                    if part:
                        chunks.append(Chunk(text=part, section=section))
                buffer = []
                buffer_len = 0

        flush()

        logger.debug(f"Split {len(text)} characters into {len(chunks)} chunks")
        return chunks


def split_markdown(text: str, max_len: int = CHUNK_MAX_LEN, overlap: int = CHUNK_OVERLAP) -> List[Chunk]:
    """Split markdown text with a one-off ChunkingEngine."""
    return ChunkingEngine(max_len=max_len, overlap=overlap).split(text)
