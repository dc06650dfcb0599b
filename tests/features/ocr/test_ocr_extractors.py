import threading
import pytest
from pathlib import Path

from ingest_engine.core.common.errors import MissingRequiredParameterError
from ingest_engine.core.extraction.domain.interfaces import IIndexService, IObjectStorage, IProgressNotifier
from ingest_engine.core.extraction.domain.models import Blob, ExtractionParams
from ingest_engine.core.extraction.domain.outcomes import Success, Failure, FailureKind, RecoverableInterrupt
from ingest_engine.features.ocr.domain.interfaces import IImageOcr, IPdfOverlayOcr
from ingest_engine.features.ocr.service.image_ocr_extractor import ImageOcrExtractor
from ingest_engine.features.ocr.service.pdf_ocr_extractor import OcrMyPdfExtractor


class RecordingIndex(IIndexService):
    def __init__(self, block: threading.Event = None):
        self.documents = []
        self.block = block

    def add_document_ocr(self, blob_id, text, language):
        if self.block is not None:
            self.block.wait(timeout=5)
        self.documents.append((blob_id, text, language))


class RecordingStorage(IObjectStorage):
    def __init__(self):
        self.objects = {}

    def put(self, key, path):
        # The scratch file is gone after extract returns, so read it now
        self.objects[key] = Path(path).read_bytes()


class RecordingProgress(IProgressNotifier):
    def __init__(self):
        self.notes = []

    def set_progress_note(self, blob_id, extractor_name, note):
        self.notes.append((blob_id, extractor_name, note))


class FakeImageOcr(IImageOcr):
    def __init__(self, outcomes):
        self.outcomes = dict(outcomes)

    def ocr_image(self, lang, image_path, stderr):
        stderr(f"Tesseract Open Source OCR Engine ({lang})")
        return self.outcomes[lang]


class FakeOverlay(IPdfOverlayOcr):
    def __init__(self, outcome=None):
        self.outcome = outcome
        self.scratch_dirs = []

    def overlay(self, lang, input_path, stderr, scratch_dir, dpi=None):
        self.scratch_dirs.append(scratch_dir)
        if self.outcome is not None:
            return self.outcome
        output = scratch_dir / f"{input_path.name}.ocr.pdf"
        output.write_bytes(f"searchable {lang}".encode())
        return Success(output)


IMAGE = Blob("img-1", "image/png", 2048)
PDF = Blob("pdf-1", "application/pdf", 4096)


def test_image_extractor_shape():
    extractor = ImageOcrExtractor(index=RecordingIndex(), ocr=FakeImageOcr({}))

    assert extractor.name == "ImageOcrExtractor"
    assert extractor.priority == 1
    assert extractor.indexing
    assert extractor.mime_types == {"image/png", "image/jpeg", "image/tiff"}
    assert extractor.cost("image/png", 2048) == 204800
    assert not extractor.can_process_mime_type("application/pdf")


def test_image_ocr_indexes_each_language(tmp_path):
    index = RecordingIndex()
    progress = RecordingProgress()
    extractor = ImageOcrExtractor(
        index=index, progress=progress,
        ocr=FakeImageOcr({"eng": Success("invoice"), "deu": Success(None)})
    )

    outcome = extractor.extract(IMAGE, tmp_path / "scan.png", ExtractionParams("ingest", languages=["eng", "deu"]))

    assert outcome == Success()
    assert index.documents == [("img-1", "invoice", "eng"), ("img-1", None, "deu")]
    assert progress.notes[0] == ("img-1", "ImageOcrExtractor", "Tesseract Open Source OCR Engine (eng)")


def test_image_ocr_requires_language(tmp_path):
    extractor = ImageOcrExtractor(index=RecordingIndex(), ocr=FakeImageOcr({}))

    with pytest.raises(MissingRequiredParameterError):
        extractor.extract(IMAGE, tmp_path / "scan.png", ExtractionParams("ingest"))


def test_image_ocr_returns_first_non_success(tmp_path):
    index = RecordingIndex()
    crash = Failure(FailureKind.SUBPROCESS_CRASHED, "Exit code: 1: ")
    extractor = ImageOcrExtractor(index=index, ocr=FakeImageOcr({"eng": crash, "fra": Success("x")}))

    outcome = extractor.extract(IMAGE, tmp_path / "scan.png", ExtractionParams("ingest", languages=["eng", "fra"]))

    assert outcome == crash
    assert index.documents == []


def test_image_ocr_interrupt_is_passed_through(tmp_path):
    extractor = ImageOcrExtractor(index=RecordingIndex(), ocr=FakeImageOcr({"eng": RecoverableInterrupt()}))

    outcome = extractor.extract(IMAGE, tmp_path / "scan.png", ExtractionParams("ingest", languages=["eng"]))

    assert isinstance(outcome, RecoverableInterrupt)


def test_slow_index_times_out(tmp_path):
    release = threading.Event()
    extractor = ImageOcrExtractor(
        index=RecordingIndex(block=release),
        ocr=FakeImageOcr({"eng": Success("text")}),
        index_timeout_seconds=0.05
    )

    try:
        outcome = extractor.extract(IMAGE, tmp_path / "scan.png", ExtractionParams("ingest", languages=["eng"]))
    finally:
        release.set()

    assert isinstance(outcome, Failure)
    assert outcome.kind == FailureKind.INDEX_TIMEOUT


class HangingIndex(IIndexService):
    """Blocks on one blob until released, answers every other blob at once."""

    def __init__(self, hang_on, release):
        self.hang_on = hang_on
        self.release = release
        self.documents = []

    def add_document_ocr(self, blob_id, text, language):
        if blob_id == self.hang_on:
            self.release.wait(timeout=5)
        self.documents.append((blob_id, text, language))


def test_hung_index_call_does_not_delay_the_next_blob(tmp_path):
    release = threading.Event()
    index = HangingIndex(hang_on="img-1", release=release)
    extractor = ImageOcrExtractor(
        index=index,
        ocr=FakeImageOcr({"eng": Success("text")}),
        index_timeout_seconds=0.2
    )
    params = ExtractionParams("ingest", languages=["eng"])

    try:
        first = extractor.extract(IMAGE, tmp_path / "a.png", params)
        second = extractor.extract(Blob("img-2", "image/png", 10), tmp_path / "b.png", params)
    finally:
        release.set()

    assert first.kind == FailureKind.INDEX_TIMEOUT
    assert second == Success()
    assert ("img-2", "text", "eng") in index.documents


def test_pdf_extractor_shape():
    extractor = OcrMyPdfExtractor(storage=RecordingStorage(), ocr=FakeOverlay())

    assert extractor.name == "OcrMyPdfExtractor"
    assert extractor.priority == 5
    assert not extractor.indexing
    assert extractor.mime_types == {"application/pdf"}
    assert OcrMyPdfExtractor.storage_key("pdf-1", "eng") == "ocr.eng/pdf-1.pdf"


def test_pdf_ocr_stores_one_copy_per_language(tmp_path):
    pdf_path = tmp_path / "doc.pdf"
    pdf_path.write_bytes(b"%PDF-1.4")
    storage = RecordingStorage()
    overlay = FakeOverlay()
    extractor = OcrMyPdfExtractor(storage=storage, ocr=overlay, scratch_root=tmp_path / "scratch")

    outcome = extractor.extract(PDF, pdf_path, ExtractionParams("ingest", languages=["eng", "rus"]))

    assert outcome == Success()
    assert storage.objects == {
        "ocr.eng/pdf-1.pdf": b"searchable eng",
        "ocr.rus/pdf-1.pdf": b"searchable rus",
    }
    # Scratch space is cleaned up after each language
    assert all(not d.exists() for d in overlay.scratch_dirs)


def test_pdf_ocr_failure_stores_nothing(tmp_path):
    storage = RecordingStorage()
    extractor = OcrMyPdfExtractor(
        storage=storage,
        ocr=FakeOverlay(Failure(FailureKind.ENCRYPTED, "The input PDF is encrypted")),
        scratch_root=tmp_path / "scratch"
    )

    outcome = extractor.extract(PDF, tmp_path / "doc.pdf", ExtractionParams("ingest", languages=["eng"]))

    assert outcome.kind == FailureKind.ENCRYPTED
    assert storage.objects == {}


def test_pdf_ocr_requires_language(tmp_path):
    extractor = OcrMyPdfExtractor(storage=RecordingStorage(), ocr=FakeOverlay(), scratch_root=tmp_path)

    with pytest.raises(MissingRequiredParameterError):
        extractor.extract(PDF, tmp_path / "doc.pdf", ExtractionParams("ingest"))
