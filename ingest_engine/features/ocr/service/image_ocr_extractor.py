# File: ingest_engine/features/ocr/service/image_ocr_extractor.py
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import FrozenSet, Optional

from ingest_engine.core.config.settings import settings
from ingest_engine.core.common.errors import MissingRequiredParameterError
from ingest_engine.core.extraction.domain.interfaces import IExtractor, IIndexService, IProgressNotifier
from ingest_engine.core.extraction.domain.models import Blob, ExtractionParams
from ingest_engine.core.extraction.domain.outcomes import ExtractionOutcome, Success, Failure, FailureKind
from ..data.tesseract_adapter import TesseractAdapter
from ..domain.interfaces import IImageOcr
from .progress import OcrStderrLogger

logger = logging.getLogger(__name__)


class ImageOcrExtractor(IExtractor):
    """
    OCRs standalone images with tesseract and pushes the text to the search index,
    once per requested language.
    """
    priority = 1
    indexing = True

    MIME_TYPES = frozenset({"image/png", "image/jpeg", "image/tiff"})

    def __init__(self,
                 index: IIndexService,
                 progress: Optional[IProgressNotifier] = None,
                 ocr: Optional[IImageOcr] = None,
                 index_timeout_seconds: Optional[float] = None):
        self.index = index
        self.progress = progress
        self.ocr = ocr or TesseractAdapter()
        self.index_timeout_seconds = settings.INDEX_TIMEOUT_SECONDS if index_timeout_seconds is None else index_timeout_seconds

    @property
    def mime_types(self) -> FrozenSet[str]:
        return self.MIME_TYPES

    def cost(self, mime_type: str, size: int) -> int:
        return 100 * size

    def extract(self, blob: Blob, file_path: Path, params: ExtractionParams) -> ExtractionOutcome:
        if not params.languages:
            raise MissingRequiredParameterError("Image OCR Extractor requires a language")

        stderr = OcrStderrLogger(self._progress_callback(blob))

        for lang in params.languages:
            outcome = self.ocr.ocr_image(lang, file_path, stderr)
            if not isinstance(outcome, Success):
                return outcome

            text = outcome.value
            logger.info(f"OCR of blob {blob.blob_id} in {lang}: {len(text) if text else 0} characters")

            if not self._index_with_timeout(blob, text, lang):
                return Failure(
                    kind=FailureKind.INDEX_TIMEOUT,
                    detail=f"Indexing OCR text ({lang}) for blob {blob.blob_id} took longer than {self.index_timeout_seconds}s"
                )

        return Success()

    def _index_with_timeout(self, blob: Blob, text: Optional[str], lang: str) -> bool:
        """
        One executor per call: a hung index call keeps its own thread and never
        delays the next blob. Errors raised by the index propagate.
        """
        calls = ThreadPoolExecutor(max_workers=1, thread_name_prefix="image-ocr-index")
        try:
            future = calls.submit(self.index.add_document_ocr, blob.blob_id, text, lang)
            future.result(timeout=self.index_timeout_seconds)
            return True
        except FutureTimeoutError:
            logger.warning(f"Index call for blob {blob.blob_id} ({lang}) timed out after {self.index_timeout_seconds}s")
            return False
        finally:
            calls.shutdown(wait=False)

    def _progress_callback(self, blob: Blob):
        if self.progress is None:
            return None
        return lambda note: self.progress.set_progress_note(blob.blob_id, self.name, note)
