from typing import List
from ingest_engine.core.config.settings import settings
from ..data.repository import PostgresEventRepo, DoNothingEventRepo
from ..domain.interfaces import IEventRepository
from ..domain.models import BlobStatus
from .recorder import EventRecorder
from .status import IngestionStatusService


def default_event_repository() -> IEventRepository:
    """The SQL-backed log, or a sink that drops everything when observability is off."""
    if settings.OBSERVABILITY_ENABLED:
        return PostgresEventRepo()
    return DoNothingEventRepo()


def get_ingestion_status(ingest_id: str, ingest_id_is_prefix: bool = False) -> List[BlobStatus]:
    """
    Public API: per-blob status of an ingestion, or of every ingestion whose
    id starts with `ingest_id` when `ingest_id_is_prefix` is set.
    """
    return IngestionStatusService(default_event_repository()).get_statuses(ingest_id, ingest_id_is_prefix)


def delete_blob_history(blob_id: str) -> int:
    """
    Public API: removes every event and metadata row of a blob.
    Call when the blob itself is deleted. Returns the number of rows removed.
    """
    return EventRecorder(default_event_repository()).delete_blob(blob_id)
