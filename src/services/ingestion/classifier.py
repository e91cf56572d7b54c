"""Line classification for JSONL session transcripts.

Every non-blank line becomes a :class:`ParsedRecord`. A line that is not
valid JSON is kept as a :class:`Raw` payload; it still produces a record
and is counted as a soft error by the parser.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decoded:
    """A line that decoded to a JSON value."""
    value: Any


@dataclass(frozen=True)
class Raw:
    """A line that could not be decoded; only its text is kept."""
    text: str


LinePayload = Union[Decoded, Raw]


def _reject_constant(name: str) -> Any:
    # NaN / Infinity are not JSON and cannot be stored in a JSON column
    raise ValueError(f"Invalid JSON constant: {name}")


def decode_line(raw_line: str) -> LinePayload:
    """Decode a single line, returning ``Raw`` instead of raising."""
    try:
        value = json.loads(raw_line, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return Raw(raw_line)
    if value is None:
        # A bare ``null`` carries no content to store
        return Raw(raw_line)
    return Decoded(value)


def _scalar_field(value: Dict[str, Any], key: str) -> Optional[str]:
    """Text of a scalar field as written in the JSON; objects and arrays are ignored."""
    field = value.get(key)
    if isinstance(field, str):
        return field or None
    if isinstance(field, (bool, int, float)):
        return json.dumps(field)
    return None


def _text_column(text: Optional[str]) -> Optional[str]:
    # PostgreSQL text columns cannot hold NUL
    if text is None or "\x00" not in text:
        return text
    return text.replace("\x00", "\\u0000")


@dataclass(frozen=True)
class Envelope:
    """Optional well-known fields found on a decoded line.

    Producers are not bound to a schema, so every field is optional and
    is read with a presence check against the decoded value.
    """
    type: Optional[str] = None
    role: Optional[str] = None
    timestamp: Optional[str] = None
    metadata: Any = None

    @classmethod
    def from_value(cls, value: Any) -> "Envelope":
        """Build an envelope from any decoded JSON value."""
        if not isinstance(value, dict):
            return cls()
        return cls(
            type=_scalar_field(value, "type"),
            role=_scalar_field(value, "role"),
            timestamp=_scalar_field(value, "timestamp"),
            metadata=value.get("metadata"),
        )

    @property
    def message_type(self) -> Optional[str]:
        """``type`` wins; ``role`` is used when ``type`` is absent."""
        return self.type or self.role


@dataclass
class ParsedRecord:
    """A classified line ready to be written to the record store."""
    line_number: int
    raw_text: str
    payload: LinePayload
    message_type: Optional[str] = None
    message_timestamp: Optional[str] = None
    metadata: Any = None

    @property
    def is_decoded(self) -> bool:
        return isinstance(self.payload, Decoded)

    @property
    def content(self) -> Any:
        if isinstance(self.payload, Decoded):
            return self.payload.value
        return None

    def to_row(self, file_id: str) -> Dict[str, Any]:
        """Column values for the ``session_lines`` table.

        NUL characters in text columns are written as the ``\\u0000``
        escape; JSON columns keep them escaped already.
        """
        return {
            "file_id": file_id,
            "line_number": self.line_number,
            "content": self.content,
            "raw_text": _text_column(self.raw_text),
            "message_type": _text_column(self.message_type),
            "message_timestamp": _text_column(self.message_timestamp),
            "metadata": self.metadata,
        }


def classify(raw_line: str, line_number: int) -> ParsedRecord:
    """Classify one line of a transcript. Never raises."""
    payload = decode_line(raw_line)
    if isinstance(payload, Raw):
        logger.warning(f"Line {line_number} is not valid JSON; storing raw text")
        return ParsedRecord(line_number=line_number, raw_text=raw_line, payload=payload)

    envelope = Envelope.from_value(payload.value)
    return ParsedRecord(
        line_number=line_number,
        raw_text=raw_line,
        payload=payload,
        message_type=envelope.message_type,
        message_timestamp=envelope.timestamp,
        metadata=envelope.metadata,
    )
