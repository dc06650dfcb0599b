# File: ingest_engine/features/ocr/domain/models.py
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Tuple

from ingest_engine.core.extraction.domain.outcomes import FailureKind


class OcrMyPdfFlag(str, Enum):
    """How ocrmypdf treats pages that already carry text."""
    REDO_OCR = "--redo-ocr"
    SKIP_TEXT = "--skip-text"


@dataclass(frozen=True)
class TesseractConfig:
    engine_mode: int = 1
    page_segmentation_mode: int = 3


# ocrmypdf return-code policy: https://ocrmypdf.readthedocs.io/en/latest/advanced.html#return-code-policy
# 4 = output written but may not be a valid PDF, 10 = valid PDF but PDF/A conversion failed.
# Both leave a usable file behind, so they count as success.
OCRMYPDF_SUCCESS_CODES: FrozenSet[int] = frozenset({0, 4, 10})

OCRMYPDF_INPUT_FILE_ERROR = 2
OCRMYPDF_ENCRYPTED_PDF = 8

OCRMYPDF_FAILURES: Dict[int, Tuple[FailureKind, str]] = {
    1: (FailureKind.BAD_ARGS, "Invalid arguments, exited with an error."),
    2: (FailureKind.INVALID_INPUT, "The input file does not seem to be a valid PDF."),
    3: (FailureKind.MISSING_DEPENDENCY, "An external program required by OCRmyPDF is missing."),
    5: (FailureKind.FILE_ACCESS, "Insufficient permissions to read the input file or write the output file."),
    6: (FailureKind.ALREADY_OCRED, "The file already appears to contain text so it may not need OCR."),
    7: (FailureKind.CHILD_PROCESS, "An error occurred in an external program (child process) and OCRmyPDF cannot continue."),
    8: (FailureKind.ENCRYPTED, "The input PDF is encrypted and could not be decrypted."),
    9: (FailureKind.INVALID_CONFIG, "Tesseract rejected the custom configuration file."),
    15: (FailureKind.OTHER, "Some other error occurred."),
    130: (FailureKind.USER_INTERRUPT, "The program was interrupted by pressing Ctrl+C."),
}
