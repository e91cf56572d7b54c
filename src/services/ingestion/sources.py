"""Content sources for the ingestion pipeline.

A source is either resident in memory (:class:`BufferedSource`) or a
single-use stream of chunks (:class:`ChunkedSource`). Both can be read in
full or streamed; the orchestrator picks one based on the source size.
"""

import codecs
import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterable, AsyncIterator, Optional, Union

import aiofiles

from core.exceptions import ContentSourceError

logger = logging.getLogger(__name__)

Chunk = Union[str, bytes]


def utf8_size(text: str) -> int:
    """Byte length of ``text`` once encoded as UTF-8."""
    return len(text.encode("utf-8", errors="surrogatepass"))


async def decode_chunks(chunks: AsyncIterable[Chunk]) -> AsyncIterator[str]:
    """Decode a stream of chunks to text.

    Byte chunks are decoded as strict UTF-8; a multi-byte sequence split
    across two chunks is carried over to the next one.
    """
    decoder = codecs.getincrementaldecoder("utf-8")()
    async for chunk in chunks:
        if isinstance(chunk, bytes):
            try:
                chunk = decoder.decode(chunk)
            except UnicodeDecodeError as e:
                raise ContentSourceError(f"Content is not valid UTF-8: {e}") from e
        if chunk:
            yield chunk
    try:
        tail = decoder.decode(b"", final=True)
    except UnicodeDecodeError as e:
        raise ContentSourceError(f"Content is not valid UTF-8: {e}") from e
    if tail:
        yield tail


async def text_chunks(content: Chunk, chunk_size: int) -> AsyncIterator[Chunk]:
    """Yield fixed-size slices of resident content."""
    for start in range(0, len(content), chunk_size):
        yield content[start:start + chunk_size]


async def file_chunks(path: str, chunk_size: int) -> AsyncIterator[bytes]:
    """Stream a local file in binary chunks."""
    try:
        async with aiofiles.open(path, "rb") as f:
            while True:
                chunk = await f.read(chunk_size)
                if not chunk:
                    break
                yield chunk
    except OSError as e:
        raise ContentSourceError(f"Could not read {path}: {e}") from e


async def upload_chunks(upload: Any, chunk_size: int) -> AsyncIterator[bytes]:
    """Stream a FastAPI ``UploadFile`` in binary chunks."""
    try:
        await upload.seek(0)
        while True:
            chunk = await upload.read(chunk_size)
            if not chunk:
                break
            yield chunk
    except OSError as e:
        raise ContentSourceError(f"Could not read upload: {e}") from e


class ContentSource(ABC):
    """Raw JSONL content handed to the orchestrator."""

    #: Size in bytes, or ``None`` when unknown
    size: Optional[int] = None

    @abstractmethod
    async def read_text(self) -> str:
        """Return the whole content as text."""

    @abstractmethod
    def stream(self, chunk_size: int) -> AsyncIterator[str]:
        """Yield the content as decoded text chunks."""


class BufferedSource(ContentSource):
    """Content that is already resident in memory."""

    def __init__(self, content: Chunk):
        self.content = content
        if isinstance(content, bytes):
            self.size = len(content)
        else:
            self.size = utf8_size(content)

    async def read_text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        try:
            return self.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ContentSourceError(f"Content is not valid UTF-8: {e}") from e

    def stream(self, chunk_size: int) -> AsyncIterator[str]:
        return decode_chunks(text_chunks(self.content, chunk_size))


class ChunkedSource(ContentSource):
    """A single-use stream of chunks (from a file, an upload, a socket...)."""

    def __init__(self, chunks: AsyncIterable[Chunk], size: Optional[int] = None):
        self._chunks = chunks
        self._consumed = False
        self.size = size

    def _take(self) -> AsyncIterable[Chunk]:
        if self._consumed:
            raise ContentSourceError("Chunked content source was already consumed")
        self._consumed = True
        return self._chunks

    async def read_text(self) -> str:
        parts = [part async for part in decode_chunks(self._take())]
        return "".join(parts)

    def stream(self, chunk_size: int) -> AsyncIterator[str]:
        return decode_chunks(self._take())

    @classmethod
    def from_file(cls, path: str, chunk_size: int, size: Optional[int] = None) -> "ChunkedSource":
        return cls(file_chunks(path, chunk_size), size=size)

    @classmethod
    def from_upload(cls, upload: Any, chunk_size: int) -> "ChunkedSource":
        return cls(upload_chunks(upload, chunk_size), size=getattr(upload, "size", None))


def as_source(content: Union[Chunk, ContentSource]) -> ContentSource:
    """Wrap plain ``str``/``bytes`` content in a :class:`BufferedSource`."""
    if isinstance(content, ContentSource):
        return content
    if isinstance(content, (str, bytes)):
        return BufferedSource(content)
    raise TypeError(f"Unsupported content type: {type(content).__name__}")
