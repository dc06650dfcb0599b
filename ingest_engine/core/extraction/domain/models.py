from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .outcomes import Failure


@dataclass(frozen=True)
class Blob:
    """
    A single uploaded content item. The id is derived from the content,
    so the same bytes uploaded twice are the same blob.
    """
    blob_id: str
    mime_type: str
    size: int

    def __post_init__(self):
        if not self.blob_id:
            raise ValueError("Blob id cannot be empty.")
        if self.size < 0:
            raise ValueError(f"Blob size cannot be negative: {self.size}")


@dataclass(frozen=True)
class ExtractionParams:
    """
    Per-ingestion knobs handed to every extractor.
    `languages` are tesseract language codes ("eng", "fra", ...).
    """
    ingest_id: str
    languages: List[str] = field(default_factory=list)
    workspace_name: Optional[str] = None
    dpi: Optional[int] = None


@dataclass
class DispatchReport:
    """
    What happened to one blob during a dispatch pass.
    """
    blob_id: str
    extractors: List[str] = field(default_factory=list)
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, Failure] = field(default_factory=dict)
    interrupted: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def has_pending_retry(self) -> bool:
        return bool(self.interrupted)
