import logging
from ..domain.interfaces import IEventRepository
from ..domain.models import IngestionEvent, BlobMetadata

logger = logging.getLogger(__name__)


class EventRecorder:
    """
    Write side of the ingestion log.

    Every call appends; nothing is updated in place. A StorageWriteError from
    the repository is passed straight to the caller, who decides whether the
    row may be dropped. Terminal extractor events must not be.
    """

    def __init__(self, repo: IEventRepository):
        self.repo = repo

    def record_event(self, event: IngestionEvent) -> None:
        self.repo.insert_event(event)
        logger.debug(f"Recorded {event.event_type} {event.status} for blob {event.blob_id} in {event.ingest_id}")

    def record_metadata(self, metadata: BlobMetadata) -> None:
        self.repo.insert_metadata(metadata)

    def delete_blob(self, blob_id: str) -> int:
        """
        Purges the blob's events and metadata together.
        Returns the number of rows removed.
        """
        return self.repo.delete_blob(blob_id)
