import logging
from pathlib import Path
from typing import Optional

from ingest_engine.core.config.settings import settings
from ingest_engine.core.process.runner import SubprocessRunner
from ingest_engine.core.process.models import WORKER_TERMINATED_EXIT_CODE
from ingest_engine.core.extraction.domain.outcomes import (
    ExtractionOutcome, Success, Failure, FailureKind, RecoverableInterrupt
)
from ..domain.interfaces import IImageOcr
from ..domain.models import TesseractConfig
from ..service.progress import OcrStderrLogger

logger = logging.getLogger(__name__)


class TesseractAdapter(IImageOcr):
    """
    Runs tesseract on one image and reads the recognised text from stdout.
    """

    def __init__(self, runner: Optional[SubprocessRunner] = None, config: Optional[TesseractConfig] = None):
        self.runner = runner or SubprocessRunner()
        self.config = config or TesseractConfig(
            engine_mode=settings.TESSERACT_ENGINE_MODE,
            page_segmentation_mode=settings.TESSERACT_PAGE_SEGMENTATION_MODE
        )

    def ocr_image(self, lang: str, image_path: Path, stderr: OcrStderrLogger) -> ExtractionOutcome:
        cmd = [
            settings.TESSERACT_BINARY,
            str(image_path),
            "stdout",
            "-l", lang,
            "--oem", str(self.config.engine_mode),
            "--psm", str(self.config.page_segmentation_mode)
        ]

        result = self.runner.run(cmd, stderr)

        if result.exit_code == WORKER_TERMINATED_EXIT_CODE:
            # Worker killed midway. Not a failure, another worker should pick it up.
            return RecoverableInterrupt(reason="tesseract terminated externally")

        if result.exit_code != 0:
            logger.error(f"Tesseract failed on {image_path.name} with exit code {result.exit_code}")
            return Failure(
                kind=FailureKind.SUBPROCESS_CRASHED,
                detail=f"Exit code: {result.exit_code}: {stderr.get_output()}"
            )

        text = result.stdout
        return Success(text if text.strip() else None)
