# File: ingest_engine/features/observability/domain/models.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ingest_engine.core.common.enums import IngestionEventType, EventStatus, ExtractorStatusKind


@dataclass(frozen=True)
class IngestionError:
    message: str
    stack_trace: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "stackTrace": self.stack_trace}

    @classmethod
    def from_details(cls, raw: Any) -> "IngestionError":
        if isinstance(raw, dict):
            return cls(message=str(raw.get("message", "")), stack_trace=raw.get("stackTrace"))
        return cls(message=str(raw))


@dataclass(frozen=True)
class IngestionEvent:
    """
    One immutable state transition of a blob during an ingestion.

    `event_id` and `event_time` are assigned by the store; they are None on
    events that have not been written yet.
    """
    blob_id: str
    ingest_id: str
    event_type: IngestionEventType
    status: EventStatus
    details: Dict[str, Any] = field(default_factory=dict)
    event_time: Optional[datetime] = None
    event_id: Optional[int] = None

    @property
    def extractor_name(self) -> Optional[str]:
        return self.details.get("extractorName")

    @property
    def errors(self) -> List[IngestionError]:
        return [IngestionError.from_details(e) for e in self.details.get("errors") or []]

    @classmethod
    def mime_type_detected(cls,
                           blob_id: str,
                           ingest_id: str,
                           mime_type: str,
                           extractors: List[str],
                           workspace_name: Optional[str] = None) -> "IngestionEvent":
        details: Dict[str, Any] = {"extractors": list(extractors), "mimeTypes": mime_type}
        if workspace_name:
            details["workspaceName"] = workspace_name
        return cls(blob_id, ingest_id, IngestionEventType.MIME_TYPE_DETECTED, EventStatus.SUCCESS, details)

    @classmethod
    def run_extractor(cls,
                      blob_id: str,
                      ingest_id: str,
                      extractor_name: str,
                      status: EventStatus,
                      errors: Optional[List[IngestionError]] = None) -> "IngestionEvent":
        details: Dict[str, Any] = {"extractorName": extractor_name}
        if errors:
            details["errors"] = [e.as_dict() for e in errors]
        return cls(blob_id, ingest_id, IngestionEventType.RUN_EXTRACTOR, status, details)


@dataclass(frozen=True)
class BlobMetadata:
    """One row per (ingest, blob, path) observed. Append-only."""
    ingest_id: str
    blob_id: str
    file_size: int
    path: str
    insert_time: Optional[datetime] = None


# --- Derived (read side) ---

@dataclass(frozen=True)
class StatusUpdate:
    event_time: Optional[datetime]
    status: ExtractorStatusKind

    def as_dict(self) -> Dict[str, Any]:
        return {
            "eventTime": self.event_time.isoformat() if self.event_time else None,
            "status": self.status.value
        }


@dataclass(frozen=True)
class ExtractorStatus:
    """Time-ordered status history of one (blob, extractor) pair."""
    extractor_type: str
    status_updates: List[StatusUpdate] = field(default_factory=list)

    @property
    def current_status(self) -> ExtractorStatusKind:
        if not self.status_updates:
            return ExtractorStatusKind.UNKNOWN
        return self.status_updates[-1].status

    def as_dict(self) -> Dict[str, Any]:
        return {
            "extractorType": self.extractor_type,
            "statusUpdates": [u.as_dict() for u in self.status_updates]
        }


@dataclass(frozen=True)
class EventHistoryItem:
    event_time: datetime
    event_type: str
    status: str

    def as_dict(self) -> Dict[str, Any]:
        return {"eventTime": self.event_time.isoformat(), "eventType": self.event_type, "eventStatus": self.status}


@dataclass(frozen=True)
class BlobStatus:
    """
    Everything an operator needs to judge how one blob fared in one ingestion.
    Always recomputed from the event log; never stored.
    """
    blob_id: str
    ingest_id: str
    ingest_start: datetime
    most_recent_event: datetime
    paths: List[str] = field(default_factory=list)
    file_size: Optional[int] = None
    file_sizes: Dict[str, int] = field(default_factory=dict)
    workspace_name: Optional[str] = None
    mime_types: Optional[str] = None
    event_history: List[EventHistoryItem] = field(default_factory=list)
    extractor_statuses: List[ExtractorStatus] = field(default_factory=list)
    errors: List[IngestionError] = field(default_factory=list)
    infinite_loop: bool = False

    def as_dict(self) -> Dict[str, Any]:
        """camelCase shape consumed by the ingestion events table in the UI."""
        return {
            "metadata": {"blobId": self.blob_id, "ingestUri": self.ingest_id},
            "paths": list(self.paths),
            "fileSize": self.file_size,
            "workspaceName": self.workspace_name,
            "ingestStart": self.ingest_start.isoformat(),
            "mostRecentEvent": self.most_recent_event.isoformat(),
            "eventStatuses": [e.as_dict() for e in self.event_history],
            "extractorStatuses": [s.as_dict() for s in self.extractor_statuses],
            "errors": [e.as_dict() for e in self.errors],
            "mimeTypes": self.mime_types,
            "infiniteLoop": self.infinite_loop
        }
