from datetime import datetime, timezone
from sqlalchemy import Column, Integer, BigInteger, String, DateTime, JSON
from ingest_engine.core.database.base import Base


def utc_now():
    return datetime.now(timezone.utc)


class IngestionEventModel(Base):
    """
    The event log. One row per state transition of a blob.
    Rows are only ever inserted, or purged together with their blob.
    """
    __tablename__ = "ingestion_events"

    id = Column(Integer, primary_key=True, autoincrement=True)

    blob_id = Column(String, nullable=False, index=True)
    ingest_id = Column(String, nullable=False, index=True)

    type = Column(String, nullable=False)
    status = Column(String, nullable=False)

    # e.g. {"extractorName": "ImageOcrExtractor", "errors": [{"message": ..., "stackTrace": ...}]}
    details = Column(JSON, default=dict, nullable=False)

    event_time = Column(DateTime(timezone=True), default=utc_now, nullable=False)


class BlobMetadataModel(Base):
    """
    Where a blob was seen. A blob re-ingested under another path gets another row.
    """
    __tablename__ = "blob_metadata"

    id = Column(Integer, primary_key=True, autoincrement=True)

    ingest_id = Column(String, nullable=False, index=True)
    blob_id = Column(String, nullable=False, index=True)

    file_size = Column(BigInteger, nullable=False)
    path = Column(String, nullable=False)

    insert_time = Column(DateTime(timezone=True), default=utc_now, nullable=False)
