"""
Log Ingest - Services

Ingest pipeline stages and the debug read path.
"""

from .ingest import IngestPipeline
from .normalizer import PayloadKind, RawPayload, normalize_payload
from .reader import DEBUG_READ_LIMIT, DebugReader
from .validator import RecordValidator
from .writer import BatchWriter

__all__ = [
    "IngestPipeline",
    "PayloadKind",
    "RawPayload",
    "normalize_payload",
    "RecordValidator",
    "BatchWriter",
    "DebugReader",
    "DEBUG_READ_LIMIT",
]
