"""Line splitting and numbering for JSONL content.

Line numbers count non-blank lines only: the first non-blank line is 1,
the next non-blank line is 2, and so on, regardless of how many blank
lines sit between them. Buffered and streamed content go through the same
numbering so both produce identical records.
"""

import logging
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable, Iterator, Union

from .classifier import ParsedRecord, classify

logger = logging.getLogger(__name__)

Emit = Callable[[ParsedRecord], Awaitable[None]]


def _normalize(line: str) -> str:
    line = line.strip()
    if line.startswith("\ufeff"):
        line = line[1:].strip()
    return line


def iter_buffered_lines(text: str) -> Iterator[str]:
    """Yield the non-blank, trimmed lines of resident content."""
    for line in text.split("\n"):
        line = _normalize(line)
        if line:
            yield line


async def aiter_streamed_lines(chunks: AsyncIterable[str]) -> AsyncIterator[str]:
    """Yield the non-blank, trimmed lines of a stream of text chunks.

    Only the current partial line is held in memory between chunks.
    """
    partial = []
    async for chunk in chunks:
        if "\n" not in chunk:
            partial.append(chunk)
            continue
        pieces = chunk.split("\n")
        partial.append(pieces[0])
        line = _normalize("".join(partial))
        if line:
            yield line
        for piece in pieces[1:-1]:
            line = _normalize(piece)
            if line:
                yield line
        partial = [pieces[-1]]
    line = _normalize("".join(partial))
    if line:
        yield line


@dataclass
class ParseStats:
    """Counters for one parser run."""
    total_lines: int = 0
    new_lines: int = 0
    errors: int = 0
    skipped_lines: int = 0

    @property
    def emitted(self) -> int:
        return self.new_lines + self.errors


class StreamingParser:
    """Number, filter and classify lines, handing each record to ``emit``.

    Lines numbered at or below ``resume_from_line`` were stored by an
    earlier run and are skipped without being classified.
    """

    def __init__(self, resume_from_line: int = 0):
        if resume_from_line < 0:
            raise ValueError("resume_from_line must be >= 0")
        self.resume_from_line = resume_from_line
        self.stats = ParseStats()

    async def _handle(self, line: str, emit: Emit) -> None:
        self.stats.total_lines += 1
        line_number = self.stats.total_lines
        if line_number <= self.resume_from_line:
            self.stats.skipped_lines += 1
            return

        record = classify(line, line_number)
        if record.is_decoded:
            self.stats.new_lines += 1
        else:
            self.stats.errors += 1
        await emit(record)

    async def parse(self, lines: Union[Iterable[str], AsyncIterable[str]], emit: Emit) -> ParseStats:
        """Consume already split lines (sync or async iterable)."""
        if hasattr(lines, "__aiter__"):
            async for line in lines:
                await self._handle(line, emit)
        else:
            for line in lines:
                await self._handle(line, emit)
        return self.stats

    async def parse_text(self, text: str, emit: Emit) -> ParseStats:
        """Buffered mode: the whole content is in memory."""
        return await self.parse(iter_buffered_lines(text), emit)

    async def parse_chunks(self, chunks: AsyncIterable[str], emit: Emit) -> ParseStats:
        """Streaming mode: content arrives as text chunks."""
        return await self.parse(aiter_streamed_lines(chunks), emit)
