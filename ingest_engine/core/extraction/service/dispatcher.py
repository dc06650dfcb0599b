# File: ingest_engine/core/extraction/service/dispatcher.py

import logging
import traceback
from pathlib import Path

from ingest_engine.core.common.enums import EventStatus
from ingest_engine.core.common.errors import MissingRequiredParameterError, StorageError
from ingest_engine.features.observability.domain.models import IngestionEvent, IngestionError
from ingest_engine.features.observability.service.recorder import EventRecorder
from ..domain.interfaces import IExtractor
from ..domain.models import Blob, ExtractionParams, DispatchReport
from ..domain.outcomes import ExtractionOutcome, Success, Failure, FailureKind, RecoverableInterrupt
from .registry import ExtractorRegistry

logger = logging.getLogger(__name__)


class ExtractionDispatcher:
    """
    The Central Dispatcher.
    It doesn't know *how* to extract, but it knows *who* can, in which order,
    and writes down what each of them did.
    """

    def __init__(self, registry: ExtractorRegistry, recorder: EventRecorder):
        self.registry = registry
        self.recorder = recorder

    def dispatch(self, blob: Blob, file_path: Path, params: ExtractionParams) -> DispatchReport:
        """
        Runs every capable extractor on the blob, cheapest first.

        Extraction failures end up in the report and the event log, never as
        exceptions. Raises only for configuration errors
        (MissingRequiredParameterError, after recording the attempt as failed)
        and for event-log writes that failed (StorageError).
        """
        candidates = self.registry.candidates(blob.mime_type, blob.size)
        report = DispatchReport(blob_id=blob.blob_id, extractors=[e.name for e in candidates])

        self.recorder.record_event(IngestionEvent.mime_type_detected(
            blob_id=blob.blob_id,
            ingest_id=params.ingest_id,
            mime_type=blob.mime_type,
            extractors=report.extractors,
            workspace_name=params.workspace_name
        ))

        if not candidates:
            logger.info(f"No extractor can process {blob.mime_type} (blob {blob.blob_id})")
            return report

        for extractor in candidates:
            outcome = self._run_one(extractor, blob, file_path, params)

            if isinstance(outcome, Success):
                self._record(blob, params, extractor, EventStatus.SUCCESS)
                report.succeeded.append(extractor.name)

            elif isinstance(outcome, RecoverableInterrupt):
                # No terminal event: the pair stays "Started" and another worker will retry it
                logger.info(f"{extractor.name} interrupted on blob {blob.blob_id}: {outcome.reason}")
                report.interrupted.append(extractor.name)

            else:
                logger.warning(f"{extractor.name} failed on blob {blob.blob_id}: {outcome.message}")
                self._record(
                    blob, params, extractor, EventStatus.FAILURE,
                    errors=[IngestionError(message=outcome.message, stack_trace=outcome.stack_trace)]
                )
                report.failed[extractor.name] = outcome

        logger.info(
            f"Dispatch of blob {blob.blob_id} done: "
            f"{len(report.succeeded)} succeeded, {len(report.failed)} failed, {len(report.interrupted)} interrupted"
        )
        return report

    def _run_one(self, extractor: IExtractor, blob: Blob, file_path: Path, params: ExtractionParams) -> ExtractionOutcome:
        self._record(blob, params, extractor, EventStatus.STARTED)
        logger.info(f"Running {extractor.name} on blob {blob.blob_id}")

        try:
            return extractor.extract(blob, file_path, params)

        except MissingRequiredParameterError as e:
            # Configuration bug: close the attempt so it doesn't look like one awaiting retry
            self._record(blob, params, extractor, EventStatus.FAILURE, errors=[IngestionError(message=str(e))])
            raise

        except StorageError:
            # Lost event log write, not an extraction result
            raise

        except Exception as e:
            logger.exception(f"{extractor.name} raised on blob {blob.blob_id}: {e}")
            return Failure(
                kind=FailureKind.UNEXPECTED,
                detail=str(e) or type(e).__name__,
                stack_trace=traceback.format_exc()
            )

    def _record(self, blob: Blob, params: ExtractionParams, extractor: IExtractor, status: EventStatus, errors=None) -> None:
        self.recorder.record_event(IngestionEvent.run_extractor(
            blob_id=blob.blob_id,
            ingest_id=params.ingest_id,
            extractor_name=extractor.name,
            status=status,
            errors=errors
        ))
