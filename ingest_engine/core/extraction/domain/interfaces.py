from abc import ABC, abstractmethod
from pathlib import Path
from typing import FrozenSet, Optional

from .models import Blob, ExtractionParams
from .outcomes import ExtractionOutcome


class IExtractor(ABC):
    """
    Contract for a pluggable extraction capability.

    The name is stored in the event log (RunExtractor details), so renaming an
    extractor orphans its history.
    """

    #: Lower runs first among candidates of equal cost.
    priority: int = 0

    #: Whether the extractor contributes text to the search index.
    indexing: bool = False

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    @abstractmethod
    def mime_types(self) -> FrozenSet[str]:
        pass

    def can_process_mime_type(self, mime_type: str) -> bool:
        return mime_type in self.mime_types

    @abstractmethod
    def cost(self, mime_type: str, size: int) -> int:
        """Relative cost of running on a file of this type and byte size."""
        pass

    @abstractmethod
    def extract(self, blob: Blob, file_path: Path, params: ExtractionParams) -> ExtractionOutcome:
        """
        Runs the extraction.

        Returns:
            Success, Failure or RecoverableInterrupt. Must be safe to run more
            than once for the same blob.

        Raises:
            MissingRequiredParameterError: if params lack something required.
        """
        pass


class IIndexService(ABC):
    """
    Narrow view of the search index used by the OCR extractors.
    """
    @abstractmethod
    def add_document_ocr(self, blob_id: str, text: Optional[str], language: str) -> None:
        """Attaches OCR text (or the fact that there was none) for one language."""
        pass


class IProgressNotifier(ABC):
    @abstractmethod
    def set_progress_note(self, blob_id: str, extractor_name: str, note: str) -> None:
        """
        Best-effort heartbeat for long running extractors.

        Raises:
            StorageWriteError: callers may drop the note.
        """
        pass


class IObjectStorage(ABC):
    @abstractmethod
    def put(self, key: str, path: Path) -> None:
        """Promotes a file from scratch space to permanent storage."""
        pass
