from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ingest_engine.core.extraction.domain.outcomes import ExtractionOutcome
from ..service.progress import OcrStderrLogger


class IImageOcr(ABC):
    """
    Contract for plain-text OCR of a single image.
    """
    @abstractmethod
    def ocr_image(self, lang: str, image_path: Path, stderr: OcrStderrLogger) -> ExtractionOutcome:
        """
        Returns:
            Success(text) where text is None if nothing was recognised,
            Failure(SUBPROCESS_CRASHED) or RecoverableInterrupt.
        """
        pass


class IPdfOverlayOcr(ABC):
    """
    Contract for adding a searchable text layer to a PDF.
    """
    @abstractmethod
    def overlay(self,
                lang: str,
                input_path: Path,
                stderr: OcrStderrLogger,
                scratch_dir: Path,
                dpi: Optional[int] = None) -> ExtractionOutcome:
        """
        Writes the OCR'd copy into scratch_dir.

        Returns:
            Success(output_path), Failure(kind) or RecoverableInterrupt.
        """
        pass
