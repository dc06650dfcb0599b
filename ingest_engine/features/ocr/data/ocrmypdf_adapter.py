import logging
from pathlib import Path
from typing import List, Optional, Tuple

from ingest_engine.core.config.settings import settings
from ingest_engine.core.process.runner import SubprocessRunner
from ingest_engine.core.process.models import WORKER_TERMINATED_EXIT_CODE
from ingest_engine.core.extraction.domain.outcomes import ExtractionOutcome
from ..domain.interfaces import IPdfOverlayOcr
from ..domain.models import OcrMyPdfFlag
from ..domain.fallback import OverlayStep, FIRST_STEP, next_step, overlay_outcome
from ..service.progress import OcrStderrLogger

logger = logging.getLogger(__name__)


class OcrMyPdfAdapter(IPdfOverlayOcr):
    """
    OCRmyPDF wraps tesseract and writes the recognised text back into the PDF
    as an invisible layer. Encrypted inputs go through qpdf first.
    """

    def __init__(self, runner: Optional[SubprocessRunner] = None):
        self.runner = runner or SubprocessRunner()

    def overlay(self,
                lang: str,
                input_path: Path,
                stderr: OcrStderrLogger,
                scratch_dir: Path,
                dpi: Optional[int] = None) -> ExtractionOutcome:
        output_path = scratch_dir / f"{input_path.name}.ocr.pdf"
        decrypted_path = scratch_dir / f"{input_path.name}.decrypt.pdf"

        steps: List[Tuple[OverlayStep, int]] = []
        step = FIRST_STEP
        ocr_exit_code: Optional[int] = None

        while step is not OverlayStep.DONE:
            if step is OverlayStep.DECRYPT:
                logger.info(f"PDF {input_path.name} is password protected, attempting to remove protection with qpdf")
                exit_code = self._decrypt(input_path, decrypted_path, stderr)
                if exit_code == WORKER_TERMINATED_EXIT_CODE:
                    ocr_exit_code = exit_code
            else:
                source = decrypted_path if step is OverlayStep.REDO_OCR_DECRYPTED else input_path
                exit_code = self._ocrmypdf(step.flag, lang, source, output_path, scratch_dir, dpi, stderr)
                ocr_exit_code = exit_code

            steps.append((step, exit_code))
            step = next_step(step, exit_code)

            if step is OverlayStep.SKIP_TEXT:
                logger.info(f"Got input file error from ocrmypdf with --redo-ocr for {input_path.name}, attempting with --skip-text")

        summary = ", ".join(f"{s.value}={code}" for s, code in steps)
        logger.info(f"ocrmypdf on {input_path.name} finished: {summary}")
        return overlay_outcome(ocr_exit_code, output_path)

    def _ocrmypdf(self,
                  flag: OcrMyPdfFlag,
                  lang: str,
                  source: Path,
                  output_path: Path,
                  scratch_dir: Path,
                  dpi: Optional[int],
                  stderr: OcrStderrLogger) -> int:
        cmd = [settings.OCRMYPDF_BINARY, flag.value, "-l", lang]
        if dpi:
            cmd += ["--image-dpi", str(dpi)]
        cmd += [str(source.absolute()), str(output_path.absolute())]

        # ocrmypdf's own temp files go to the scratch space, not the system /tmp
        result = self.runner.run(cmd, stderr, extra_env={"TMPDIR": str(scratch_dir.absolute())})
        return result.exit_code

    def _decrypt(self, input_path: Path, decrypted_path: Path, stderr: OcrStderrLogger) -> int:
        cmd = [settings.QPDF_BINARY, "--decrypt", str(input_path.absolute()), str(decrypted_path.absolute())]
        result = self.runner.run(cmd, stderr)
        if result.exit_code != 0:
            logger.info(f"Failed to decrypt with qpdf (exit code {result.exit_code}) - file is likely encrypted with a user password.")
        return result.exit_code
