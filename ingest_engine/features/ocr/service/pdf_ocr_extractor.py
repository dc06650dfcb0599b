import logging
import tempfile
from pathlib import Path
from typing import FrozenSet, Optional

from ingest_engine.core.config.settings import settings
from ingest_engine.core.common.errors import MissingRequiredParameterError
from ingest_engine.core.extraction.domain.interfaces import IExtractor, IObjectStorage, IProgressNotifier
from ingest_engine.core.extraction.domain.models import Blob, ExtractionParams
from ingest_engine.core.extraction.domain.outcomes import ExtractionOutcome, Success
from ..data.ocrmypdf_adapter import OcrMyPdfAdapter
from ..domain.interfaces import IPdfOverlayOcr
from .progress import OcrStderrLogger

logger = logging.getLogger(__name__)


class OcrMyPdfExtractor(IExtractor):
    """
    Produces a searchable copy of a PDF per language and hands it to object
    storage. The text itself is indexed by the PDF text extractor, not here.
    """
    priority = 5
    indexing = False

    MIME_TYPES = frozenset({"application/pdf"})

    def __init__(self,
                 storage: IObjectStorage,
                 progress: Optional[IProgressNotifier] = None,
                 ocr: Optional[IPdfOverlayOcr] = None,
                 scratch_root: Optional[Path] = None):
        self.storage = storage
        self.progress = progress
        self.ocr = ocr or OcrMyPdfAdapter()
        self.scratch_root = scratch_root or settings.SCRATCH_DIR

    @property
    def mime_types(self) -> FrozenSet[str]:
        return self.MIME_TYPES

    def cost(self, mime_type: str, size: int) -> int:
        return 100 * size

    @staticmethod
    def storage_key(blob_id: str, lang: str) -> str:
        return f"ocr.{lang}/{blob_id}.pdf"

    def extract(self, blob: Blob, file_path: Path, params: ExtractionParams) -> ExtractionOutcome:
        if not params.languages:
            raise MissingRequiredParameterError("OcrMyPdf Extractor requires a language")

        callback = None
        if self.progress is not None:
            callback = lambda note: self.progress.set_progress_note(blob.blob_id, self.name, note)
        stderr = OcrStderrLogger(callback)

        self.scratch_root.mkdir(parents=True, exist_ok=True)

        for lang in params.languages:
            # Output only lives until it has been promoted to permanent storage
            with tempfile.TemporaryDirectory(dir=self.scratch_root) as tmp_dir:
                outcome = self.ocr.overlay(lang, file_path, stderr, Path(tmp_dir), dpi=params.dpi)
                if not isinstance(outcome, Success):
                    return outcome

                key = self.storage_key(blob.blob_id, lang)
                self.storage.put(key, outcome.value)
                logger.info(f"Stored OCR'd PDF for blob {blob.blob_id} at {key}")

        return Success()
