import logging
import time
from typing import Callable, List, Optional

from ingest_engine.core.config.settings import settings
from ingest_engine.core.common.errors import StorageWriteError

logger = logging.getLogger(__name__)


class OcrStderrLogger:
    """
    Stderr sink for one OCR attempt.

    Keeps every line (they end up in the failure detail if the tool crashes)
    and logs it, but forwards at most one line per throttle window as a
    progress note. OCR tools can print hundreds of lines a second and each
    note is a write to the durable store.
    """

    def __init__(self,
                 set_progress_note: Optional[Callable[[str], None]] = None,
                 throttle_seconds: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.set_progress_note = set_progress_note
        self.throttle_seconds = settings.PROGRESS_NOTE_THROTTLE_SECONDS if throttle_seconds is None else throttle_seconds
        self.clock = clock

        self.lines: List[str] = []
        self.last_note_time: Optional[float] = None

    def __call__(self, line: str) -> None:
        self.append(line)

    def append(self, line: str) -> None:
        self.lines.append(line)
        logger.info(line)

        now = self.clock()
        if self.last_note_time is None or (now - self.last_note_time) > self.throttle_seconds:
            self.last_note_time = now
            self._send_note(line)

    def _send_note(self, line: str) -> None:
        if self.set_progress_note is None:
            return
        try:
            self.set_progress_note(line)
        except StorageWriteError as e:
            # Progress notes are a heartbeat, not a record
            logger.warning(f"Dropped OCR progress note: {e}")

    def get_output(self) -> str:
        return "\n".join(self.lines)
