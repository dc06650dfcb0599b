# File: ingest_engine/core/common/enums.py

from enum import Enum, unique

@unique
class IngestionEventType(str, Enum):
    """
    The value is what lands in ingestion_events.type.
    """
    HASH_COMPLETE = "HashComplete"
    WORKSPACE_UPLOAD = "WorkspaceUpload"
    MIME_TYPE_DETECTED = "MimeTypeDetected"
    RUN_EXTRACTOR = "RunExtractor"
    UPLOAD_COMPLETE = "UploadComplete"

@unique
class EventStatus(str, Enum):
    STARTED = "Started"
    SUCCESS = "Success"
    FAILURE = "Failure"

@unique
class ExtractorStatusKind(str, Enum):
    """Derived status of one (blob, extractor) pair as shown to operators."""
    UNKNOWN = "Unknown"
    STARTED = "Started"
    SUCCESS = "Success"
    FAILURE = "Failure"
