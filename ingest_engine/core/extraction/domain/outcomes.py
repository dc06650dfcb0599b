# File: ingest_engine/core/extraction/domain/outcomes.py
from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Optional, Union


@unique
class FailureKind(str, Enum):
    """
    Closed set of reasons an extraction attempt can fail.
    The OCRmyPDF members follow its documented return-code policy.
    """
    SUBPROCESS_CRASHED = "subprocess_crashed"
    BAD_ARGS = "bad_args"
    INVALID_INPUT = "invalid_input"
    MISSING_DEPENDENCY = "missing_dependency"
    FILE_ACCESS = "file_access"
    ALREADY_OCRED = "already_ocred"
    CHILD_PROCESS = "child_process"
    ENCRYPTED = "encrypted"
    INVALID_CONFIG = "invalid_config"
    OTHER = "other"
    USER_INTERRUPT = "user_interrupt"
    INDEX_TIMEOUT = "index_timeout"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class Success:
    """
    The attempt reached a conclusion. `value` is whatever the step produced
    (OCR text, an output path) and may be None.
    """
    value: Any = None


@dataclass(frozen=True)
class RecoverableInterrupt:
    """
    The worker was terminated before the tool finished.
    Not a failure: some worker must pick the task up again.
    """
    reason: str = "Subprocess terminated externally"


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    detail: str = ""
    stack_trace: Optional[str] = None

    @property
    def message(self) -> str:
        return f"{self.kind.value}: {self.detail}" if self.detail else self.kind.value


ExtractionOutcome = Union[Success, RecoverableInterrupt, Failure]
