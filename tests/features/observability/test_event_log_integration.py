import pytest
from sqlalchemy.exc import OperationalError

from ingest_engine.core.common.enums import EventStatus, ExtractorStatusKind
from ingest_engine.core.common.errors import StorageReadError, StorageWriteError
from ingest_engine.features.observability.data.repository import PostgresEventRepo, DoNothingEventRepo
from ingest_engine.features.observability.domain.models import IngestionEvent, IngestionError, BlobMetadata
from ingest_engine.features.observability.service.status import IngestionStatusService


def ingest_blob(recorder, blob_id, ingest_id, path, outcome=EventStatus.SUCCESS):
    recorder.record_metadata(BlobMetadata(ingest_id, blob_id, 512, path))
    recorder.record_event(IngestionEvent.mime_type_detected(blob_id, ingest_id, "image/png", ["ImageOcrExtractor"]))
    recorder.record_event(IngestionEvent.run_extractor(blob_id, ingest_id, "ImageOcrExtractor", EventStatus.STARTED))
    errors = [IngestionError("tesseract crashed")] if outcome == EventStatus.FAILURE else None
    recorder.record_event(IngestionEvent.run_extractor(blob_id, ingest_id, "ImageOcrExtractor", outcome, errors))


def test_written_events_come_back_as_status(recorder, event_repo):
    """
    Integration Test:
    Writes a blob's ingestion to the database and rebuilds its status from it.
    """
    ingest_blob(recorder, "blob-1", "leaks/batch-1", "/inbox/a.png", EventStatus.FAILURE)

    [status] = IngestionStatusService(event_repo).get_statuses("leaks/batch-1")

    assert status.blob_id == "blob-1"
    assert status.paths == ["/inbox/a.png"]
    assert status.file_size == 512
    assert status.extractor_statuses[0].current_status == ExtractorStatusKind.FAILURE
    assert [e.message for e in status.errors] == ["tesseract crashed"]
    assert status.ingest_start <= status.most_recent_event


def test_events_are_read_back_in_write_order(recorder, event_repo):
    ingest_blob(recorder, "blob-1", "leaks/batch-1", "/inbox/a.png")

    events = event_repo.fetch_events("leaks/batch-1", False)

    assert [e.status for e in events] == [EventStatus.SUCCESS, EventStatus.STARTED, EventStatus.SUCCESS]
    assert [e.event_id for e in events] == sorted(e.event_id for e in events)


def test_exact_and_prefix_queries(recorder, event_repo):
    ingest_blob(recorder, "blob-1", "leaks/batch-1", "/a.png")
    ingest_blob(recorder, "blob-2", "leaks/batch-2", "/b.png")
    ingest_blob(recorder, "blob-3", "other/batch-1", "/c.png")

    service = IngestionStatusService(event_repo)

    assert [s.blob_id for s in service.get_statuses("leaks/batch-1")] == ["blob-1"]
    assert {s.blob_id for s in service.get_statuses("leaks/", ingest_id_is_prefix=True)} == {"blob-1", "blob-2"}
    assert service.get_statuses("leaks/") == []


def test_prefix_wildcards_are_literal(recorder, event_repo):
    ingest_blob(recorder, "blob-1", "col_a/1", "/a.png")
    ingest_blob(recorder, "blob-2", "colXa/1", "/b.png")
    ingest_blob(recorder, "blob-3", "100%/1", "/c.png")
    ingest_blob(recorder, "blob-4", "1000/1", "/d.png")

    service = IngestionStatusService(event_repo)

    assert [s.blob_id for s in service.get_statuses("col_a", ingest_id_is_prefix=True)] == ["blob-1"]
    assert [s.blob_id for s in service.get_statuses("100%", ingest_id_is_prefix=True)] == ["blob-3"]


def test_delete_removes_only_that_blob(recorder, event_repo):
    ingest_blob(recorder, "blob-1", "leaks/batch-1", "/a.png")
    ingest_blob(recorder, "blob-1", "leaks/batch-2", "/a.png")
    ingest_blob(recorder, "blob-2", "leaks/batch-1", "/b.png")

    removed = recorder.delete_blob("blob-1")

    # 3 events + 1 metadata row per ingestion
    assert removed == 8
    assert {e.blob_id for e in event_repo.fetch_events("leaks/", True)} == {"blob-2"}
    assert {m.blob_id for m in event_repo.fetch_metadata("leaks/", True)} == {"blob-2"}
    assert recorder.delete_blob("blob-1") == 0


def test_do_nothing_repo_drops_everything():
    repo = DoNothingEventRepo()
    repo.insert_event(IngestionEvent.run_extractor("b", "i", "ImageOcrExtractor", EventStatus.STARTED))
    repo.insert_metadata(BlobMetadata("i", "b", 1, "/x"))

    assert repo.fetch_events("i", False) == []
    assert IngestionStatusService(repo).get_statuses("i") == []
    assert repo.delete_blob("b") == 0


class BrokenSession:
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def add(self, row):
        pass

    def commit(self):
        raise OperationalError("INSERT", {}, Exception("server closed the connection"))

    def rollback(self):
        pass

    def query(self, *args):
        raise OperationalError("SELECT", {}, Exception("server closed the connection"))


def test_driver_errors_are_wrapped():
    repo = PostgresEventRepo(session_factory=BrokenSession)

    with pytest.raises(StorageWriteError) as write_error:
        repo.insert_event(IngestionEvent.run_extractor("b", "i", "ImageOcrExtractor", EventStatus.STARTED))
    assert isinstance(write_error.value.cause, OperationalError)

    with pytest.raises(StorageReadError):
        repo.fetch_events("i", False)

    with pytest.raises(StorageReadError):
        IngestionStatusService(repo).get_statuses("i")


def test_public_api_reads_and_purges(recorder):
    from ingest_engine.features.observability.service.api import get_ingestion_status, delete_blob_history

    ingest_blob(recorder, "blob-1", "leaks/batch-1", "/a.png")

    [status] = get_ingestion_status("leaks/", ingest_id_is_prefix=True)
    assert status.as_dict()["metadata"] == {"blobId": "blob-1", "ingestUri": "leaks/batch-1"}

    assert delete_blob_history("blob-1") == 4
    assert get_ingestion_status("leaks/batch-1") == []


def test_disabled_observability_uses_no_op_store(monkeypatch):
    from ingest_engine.features.observability.service.api import default_event_repository

    monkeypatch.setenv("OBSERVABILITY_ENABLED", "false")
    assert isinstance(default_event_repository(), DoNothingEventRepo)

    monkeypatch.setenv("OBSERVABILITY_ENABLED", "true")
    assert isinstance(default_event_repository(), PostgresEventRepo)
