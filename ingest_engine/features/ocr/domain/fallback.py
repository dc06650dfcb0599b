# File: ingest_engine/features/ocr/domain/fallback.py
"""
Retry policy for ocrmypdf, as a finite-state sequence.

    REDO_OCR --2--> SKIP_TEXT ----------------------> DONE
    REDO_OCR --8--> DECRYPT --ok--> REDO_OCR_DECRYPTED --> DONE
                    DECRYPT --fail----------------------> DONE
    REDO_OCR --*------------------------------------> DONE

The graph has no cycles, so a single overlay runs ocrmypdf at most twice.
"""
from enum import Enum
from pathlib import Path
from typing import Optional

from ingest_engine.core.extraction.domain.outcomes import ExtractionOutcome, Success, Failure, RecoverableInterrupt
from .models import (
    OcrMyPdfFlag, OCRMYPDF_SUCCESS_CODES, OCRMYPDF_FAILURES,
    OCRMYPDF_INPUT_FILE_ERROR, OCRMYPDF_ENCRYPTED_PDF
)


class OverlayStep(str, Enum):
    REDO_OCR = "redo_ocr"
    SKIP_TEXT = "skip_text"
    DECRYPT = "decrypt"
    REDO_OCR_DECRYPTED = "redo_ocr_decrypted"
    DONE = "done"

    @property
    def flag(self) -> Optional[OcrMyPdfFlag]:
        """The ocrmypdf mode this step runs, None for steps that don't run ocrmypdf."""
        if self in (OverlayStep.REDO_OCR, OverlayStep.REDO_OCR_DECRYPTED):
            return OcrMyPdfFlag.REDO_OCR
        if self is OverlayStep.SKIP_TEXT:
            return OcrMyPdfFlag.SKIP_TEXT
        return None


FIRST_STEP = OverlayStep.REDO_OCR


def next_step(step: OverlayStep, exit_code: int) -> OverlayStep:
    """Where to go after `step` finished with `exit_code`."""
    if step is OverlayStep.REDO_OCR:
        if exit_code == OCRMYPDF_INPUT_FILE_ERROR:
            # Some valid PDFs (e.g. with fillable forms) are only rejected by the --redo-ocr code path
            return OverlayStep.SKIP_TEXT
        if exit_code == OCRMYPDF_ENCRYPTED_PDF:
            # An owner password can be stripped; a user password can't
            return OverlayStep.DECRYPT
        return OverlayStep.DONE

    if step is OverlayStep.DECRYPT:
        return OverlayStep.REDO_OCR_DECRYPTED if exit_code == 0 else OverlayStep.DONE

    return OverlayStep.DONE


def overlay_outcome(exit_code: int, output_path: Path) -> ExtractionOutcome:
    """Translates the final ocrmypdf exit code into an outcome."""
    if exit_code in OCRMYPDF_SUCCESS_CODES:
        return Success(output_path)

    if exit_code in OCRMYPDF_FAILURES:
        kind, message = OCRMYPDF_FAILURES[exit_code]
        return Failure(kind=kind, detail=f"{message} (exit code {exit_code})")

    # Everything else, 143 included: the worker was stopped, let another one pick it up
    return RecoverableInterrupt(reason=f"ocrmypdf exited with {exit_code}")
