"""
Session Ingestion Pipeline

Incrementally parses JSONL session transcripts, classifies each line and
upserts it into the record store, keyed by (file id, line number).
"""

from .classifier import Decoded, Raw, Envelope, ParsedRecord, classify, decode_line
from .parser import StreamingParser, ParseStats, iter_buffered_lines, aiter_streamed_lines
from .batch_writer import BatchWriter
from .store import RecordStore, SqlAlchemyRecordStore, FileState
from .sources import ContentSource, BufferedSource, ChunkedSource, as_source
from .orchestrator import IngestionOrchestrator, IngestionResult
from .status import StatusReporter, ProcessingStatusReport

__all__ = [
    'Decoded',
    'Raw',
    'Envelope',
    'ParsedRecord',
    'classify',
    'decode_line',
    'StreamingParser',
    'ParseStats',
    'iter_buffered_lines',
    'aiter_streamed_lines',
    'BatchWriter',
    'RecordStore',
    'SqlAlchemyRecordStore',
    'FileState',
    'ContentSource',
    'BufferedSource',
    'ChunkedSource',
    'as_source',
    'IngestionOrchestrator',
    'IngestionResult',
    'StatusReporter',
    'ProcessingStatusReport',
]
