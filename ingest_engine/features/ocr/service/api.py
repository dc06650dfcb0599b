from pathlib import Path
from ingest_engine.core.extraction.domain.outcomes import ExtractionOutcome
from ..data.tesseract_adapter import TesseractAdapter
from ..data.ocrmypdf_adapter import OcrMyPdfAdapter
from .progress import OcrStderrLogger


def run_image_ocr(image_path: str, lang: str = "eng") -> ExtractionOutcome:
    """
    Standalone API: OCRs one image.
    Does NOT interact with the database or the search index.
    """
    return TesseractAdapter().ocr_image(lang, Path(image_path), OcrStderrLogger())


def run_pdf_overlay(pdf_path: str, output_dir: str, lang: str = "eng") -> ExtractionOutcome:
    """
    Standalone API: writes a searchable copy of a PDF into output_dir.
    Useful for CLI tools and debugging a problem file without the dispatcher.
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    return OcrMyPdfAdapter().overlay(lang, Path(pdf_path), OcrStderrLogger(), out)
