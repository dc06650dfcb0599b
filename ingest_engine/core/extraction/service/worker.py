# File: ingest_engine/core/extraction/service/worker.py

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ingest_engine.features.observability.domain.models import BlobMetadata
from ingest_engine.features.observability.service.api import default_event_repository
from ingest_engine.features.observability.service.recorder import EventRecorder
from ..domain.interfaces import IIndexService, IObjectStorage, IProgressNotifier
from ..domain.models import Blob, ExtractionParams, DispatchReport
from .dispatcher import ExtractionDispatcher
from .registry import ExtractorRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionTask:
    """
    One unit of work pulled by a worker: a blob, where its bytes are on local
    disk, and the path it was uploaded under.
    """
    blob: Blob
    file_path: Path
    upload_path: str
    params: ExtractionParams

    def __post_init__(self):
        if not self.file_path.exists():
            raise FileNotFoundError(f"Blob file not found: {self.file_path}")


class ExtractionWorker:
    """
    Worker for extraction tasks.
    Records where the blob was seen, then lets the dispatcher run the extractors.
    Safe to run twice for the same task: every write is an append.
    """

    def __init__(self, dispatcher: ExtractionDispatcher):
        self.dispatcher = dispatcher

    def handle(self, task: ExtractionTask) -> DispatchReport:
        logger.info(f"Processing blob {task.blob.blob_id} ({task.blob.mime_type}) from {task.upload_path}")

        self.dispatcher.recorder.record_metadata(BlobMetadata(
            ingest_id=task.params.ingest_id,
            blob_id=task.blob.blob_id,
            file_size=task.blob.size,
            path=task.upload_path
        ))

        return self.dispatcher.dispatch(task.blob, task.file_path, task.params)


def build_dispatcher(index: IIndexService,
                     storage: IObjectStorage,
                     progress: Optional[IProgressNotifier] = None,
                     recorder: Optional[EventRecorder] = None) -> ExtractionDispatcher:
    """
    Wires the OCR extractors into a dispatcher backed by the configured event log.
    Lazy imports keep core free of a hard dependency on the feature packages.
    """
    from ingest_engine.features.ocr.service.image_ocr_extractor import ImageOcrExtractor
    from ingest_engine.features.ocr.service.pdf_ocr_extractor import OcrMyPdfExtractor

    registry = ExtractorRegistry()
    registry.register(ImageOcrExtractor(index=index, progress=progress))
    registry.register(OcrMyPdfExtractor(storage=storage, progress=progress))

    return ExtractionDispatcher(registry, recorder or EventRecorder(default_event_repository()))
