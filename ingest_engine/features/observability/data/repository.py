import logging
from enum import Enum
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ingest_engine.core.database.connection import SessionLocal
from ingest_engine.core.common.enums import IngestionEventType, EventStatus
from ingest_engine.core.common.errors import StorageReadError, StorageWriteError
from .sql_models import IngestionEventModel, BlobMetadataModel
from ..domain.interfaces import IEventRepository
from ..domain.models import IngestionEvent, BlobMetadata

logger = logging.getLogger(__name__)


def _coerce(enum_cls, raw: str):
    # Other writers may log event types this module does not know about; keep them as plain strings.
    try:
        return enum_cls(raw)
    except ValueError:
        return raw


def _text(value) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _ingest_filter(column, ingest_id: str, ingest_id_is_prefix: bool):
    if ingest_id_is_prefix:
        # LIKE 'prefix%' with '%' and '_' in the prefix escaped
        return column.startswith(ingest_id, autoescape=True)
    return column == ingest_id


class PostgresEventRepo(IEventRepository):
    """
    SQLAlchemy implementation of the ingestion log.
    Works against PostgreSQL in production and SQLite in tests.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    def insert_event(self, event: IngestionEvent) -> None:
        with self.session_factory() as db:
            try:
                row = IngestionEventModel(
                    blob_id=event.blob_id,
                    ingest_id=event.ingest_id,
                    type=_text(event.event_type),
                    status=_text(event.status),
                    details=dict(event.details)
                )
                if event.event_time is not None:
                    row.event_time = event.event_time
                db.add(row)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.warning(
                    f"An exception occurred while inserting ingestion event "
                    f"blobId: {event.blob_id}, ingestId: {event.ingest_id} eventType: {event.event_type} "
                    f"exception: {e}"
                )
                raise StorageWriteError(f"Failed to insert ingestion event for blob {event.blob_id}", e) from e

    def insert_metadata(self, metadata: BlobMetadata) -> None:
        with self.session_factory() as db:
            try:
                row = BlobMetadataModel(
                    ingest_id=metadata.ingest_id,
                    blob_id=metadata.blob_id,
                    file_size=metadata.file_size,
                    path=metadata.path
                )
                if metadata.insert_time is not None:
                    row.insert_time = metadata.insert_time
                db.add(row)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.warning(
                    f"An exception occurred while inserting blob metadata "
                    f"blobId: {metadata.blob_id}, ingestId: {metadata.ingest_id} path: {metadata.path} "
                    f"exception: {e}"
                )
                raise StorageWriteError(f"Failed to insert metadata for blob {metadata.blob_id}", e) from e

    def fetch_events(self, ingest_id: str, ingest_id_is_prefix: bool) -> List[IngestionEvent]:
        try:
            with self.session_factory() as db:
                rows = (
                    db.query(IngestionEventModel)
                    .filter(_ingest_filter(IngestionEventModel.ingest_id, ingest_id, ingest_id_is_prefix))
                    .order_by(IngestionEventModel.event_time, IngestionEventModel.id)
                    .all()
                )
                return [
                    IngestionEvent(
                        blob_id=r.blob_id,
                        ingest_id=r.ingest_id,
                        event_type=_coerce(IngestionEventType, r.type),
                        status=_coerce(EventStatus, r.status),
                        details=r.details or {},
                        event_time=r.event_time,
                        event_id=r.id
                    )
                    for r in rows
                ]
        except SQLAlchemyError as e:
            raise StorageReadError(f"getEvents failed for ingestion {ingest_id}: {e}", e) from e

    def fetch_metadata(self, ingest_id: str, ingest_id_is_prefix: bool) -> List[BlobMetadata]:
        try:
            with self.session_factory() as db:
                rows = (
                    db.query(BlobMetadataModel)
                    .filter(_ingest_filter(BlobMetadataModel.ingest_id, ingest_id, ingest_id_is_prefix))
                    .order_by(BlobMetadataModel.insert_time, BlobMetadataModel.id)
                    .all()
                )
                return [
                    BlobMetadata(
                        ingest_id=r.ingest_id,
                        blob_id=r.blob_id,
                        file_size=r.file_size,
                        path=r.path,
                        insert_time=r.insert_time
                    )
                    for r in rows
                ]
        except SQLAlchemyError as e:
            raise StorageReadError(f"Reading blob metadata failed for ingestion {ingest_id}: {e}", e) from e

    def delete_blob(self, blob_id: str) -> int:
        with self.session_factory() as db:
            try:
                events_deleted = db.execute(
                    delete(IngestionEventModel).where(IngestionEventModel.blob_id == blob_id)
                ).rowcount
                metadata_deleted = db.execute(
                    delete(BlobMetadataModel).where(BlobMetadataModel.blob_id == blob_id)
                ).rowcount
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise StorageWriteError(f"Failed to delete ingestion events for blob {blob_id}", e) from e

        logger.info(f"Deleted {events_deleted} events and {metadata_deleted} metadata rows for blob {blob_id}")
        return events_deleted + metadata_deleted


class DoNothingEventRepo(IEventRepository):
    """
    Used when the observability store is switched off.
    Writes vanish, reads are empty.
    """

    def insert_event(self, event: IngestionEvent) -> None:
        pass

    def insert_metadata(self, metadata: BlobMetadata) -> None:
        pass

    def fetch_events(self, ingest_id: str, ingest_id_is_prefix: bool) -> List[IngestionEvent]:
        return []

    def fetch_metadata(self, ingest_id: str, ingest_id_is_prefix: bool) -> List[BlobMetadata]:
        return []

    def delete_blob(self, blob_id: str) -> int:
        return 0
