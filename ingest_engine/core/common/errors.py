# File: ingest_engine/core/common/errors.py

from typing import Optional


class IngestEngineError(Exception):
    """Base class for errors raised (not returned) by the ingestion engine."""


class MissingRequiredParameterError(IngestEngineError):
    """
    A caller asked for work without a parameter the extractor cannot run without
    (e.g. OCR with no language). Configuration bug: never retried.
    """


class StorageError(IngestEngineError):
    """
    The durable event store could not be reached or rejected the statement.
    The original driver exception is kept on `cause` (and as __cause__).
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class StorageReadError(StorageError):
    pass


class StorageWriteError(StorageError):
    pass
