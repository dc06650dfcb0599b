from abc import ABC, abstractmethod
from typing import List

from .models import IngestionEvent, BlobMetadata


class IEventRepository(ABC):
    """
    Contract for the durable, append-only ingestion log.
    Inserts never overwrite; the only deletion is the per-blob purge.
    """

    @abstractmethod
    def insert_event(self, event: IngestionEvent) -> None:
        """
        Raises:
            StorageWriteError: the row was not written.
        """
        pass

    @abstractmethod
    def insert_metadata(self, metadata: BlobMetadata) -> None:
        """
        Raises:
            StorageWriteError: the row was not written.
        """
        pass

    @abstractmethod
    def fetch_events(self, ingest_id: str, ingest_id_is_prefix: bool) -> List[IngestionEvent]:
        """
        All events of the matching ingestion(s), store-assigned id and time filled in.

        Raises:
            StorageReadError
        """
        pass

    @abstractmethod
    def fetch_metadata(self, ingest_id: str, ingest_id_is_prefix: bool) -> List[BlobMetadata]:
        """
        Raises:
            StorageReadError
        """
        pass

    @abstractmethod
    def delete_blob(self, blob_id: str) -> int:
        """
        Removes every event and metadata row of the blob in one transaction.
        Returns the number of rows removed.

        Raises:
            StorageWriteError: nothing was removed.
        """
        pass
