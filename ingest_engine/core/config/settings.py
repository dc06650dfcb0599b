# File: ingest_engine/core/config/settings.py

import os
import shutil
from pathlib import Path


class Settings:
    # --- Paths ---
    # ingest_engine/core/config/settings.py -> config -> core -> ingest_engine -> ROOT
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    SCRATCH_DIR: Path = Path(os.getenv("SCRATCH_DIR", str(DATA_DIR / "scratch")))

    # --- Database ---
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "password")
    POSTGRES_SERVER: str = os.getenv("POSTGRES_SERVER", "localhost")
    POSTGRES_PORT: str = os.getenv("POSTGRES_PORT", "5432")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "ingest_events")

    @property
    def DATABASE_URL(self) -> str:
        # SQLite only when explicitly requested (tests, local runs).
        if os.getenv("USE_SQLITE", "false").lower() == "true":
            return "sqlite:///./test_ingest_engine.db"

        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def OBSERVABILITY_ENABLED(self) -> bool:
        return os.getenv("OBSERVABILITY_ENABLED", "true").lower() == "true"

    # --- External Tools ---
    TESSERACT_BINARY: str = os.getenv("TESSERACT_BINARY_PATH", shutil.which("tesseract") or "tesseract")
    OCRMYPDF_BINARY: str = os.getenv("OCRMYPDF_BINARY_PATH", shutil.which("ocrmypdf") or "ocrmypdf")
    QPDF_BINARY: str = os.getenv("QPDF_BINARY_PATH", shutil.which("qpdf") or "qpdf")

    # --- Tesseract ---
    # 1 = LSTM engine only, 3 = fully automatic page segmentation
    TESSERACT_ENGINE_MODE: int = int(os.getenv("TESSERACT_OEM", "1"))
    TESSERACT_PAGE_SEGMENTATION_MODE: int = int(os.getenv("TESSERACT_PSM", "3"))

    # --- Ingestion Observability ---
    PROGRESS_NOTE_THROTTLE_SECONDS: float = float(os.getenv("PROGRESS_NOTE_THROTTLE_SECONDS", "5"))
    INFINITE_LOOP_EVENT_THRESHOLD: int = int(os.getenv("INFINITE_LOOP_EVENT_THRESHOLD", "100"))
    INDEX_TIMEOUT_SECONDS: float = float(os.getenv("INDEX_TIMEOUT_SECONDS", "10"))


settings = Settings()
