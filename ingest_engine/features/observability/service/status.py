# File: ingest_engine/features/observability/service/status.py
"""
Read side of the ingestion log.

Folds raw events and metadata rows into one BlobStatus per (blob, ingestion).
Everything here is a pure function over in-memory lists; the repository is
only the source of those lists. The events must be stored ones:
ordering relies on the store-assigned `event_time`. The stages are:

1. partition_stuck          - which blobs look like they are in a retry loop
2. fold_extractor_statuses  - per-extractor status history of one blob
3. aggregate_blob_status    - everything else about one blob
"""
import logging
from collections import Counter, OrderedDict
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ingest_engine.core.config.settings import settings
from ingest_engine.core.common.enums import IngestionEventType, ExtractorStatusKind
from ..domain.interfaces import IEventRepository
from ..domain.models import (
    IngestionEvent, BlobMetadata, BlobStatus, ExtractorStatus, StatusUpdate,
    EventHistoryItem, IngestionError
)

logger = logging.getLogger(__name__)


def _event_order(event: IngestionEvent):
    # Store-assigned ids break ties between events written in the same instant.
    return (event.event_time, event.event_id if event.event_id is not None else -1)


def _require_stored(events: List[IngestionEvent]) -> None:
    unstored = [e for e in events if e.event_time is None]
    if unstored:
        raise ValueError(
            f"{len(unstored)} event(s) of blob {unstored[0].blob_id} have no event_time; "
            f"statuses can only be built from stored events."
        )


def _status_kind(raw) -> ExtractorStatusKind:
    text = raw.value if isinstance(raw, Enum) else str(raw)
    try:
        return ExtractorStatusKind(text)
    except ValueError:
        return ExtractorStatusKind.UNKNOWN


def partition_stuck(events: Iterable[IngestionEvent], threshold: Optional[int] = None) -> Set[str]:
    """
    Blobs with strictly more than `threshold` events in scope.

    This is a heuristic: a blob legitimately re-ingested many times trips it
    too. It exists so that a blob whose extractor keeps crashing and being
    retried forever does not make the whole status query unbounded.
    """
    limit = settings.INFINITE_LOOP_EVENT_THRESHOLD if threshold is None else threshold
    counts = Counter(e.blob_id for e in events)
    return {blob_id for blob_id, count in counts.items() if count > limit}


def declared_extractors(events: Iterable[IngestionEvent]) -> List[str]:
    """Extractors named by MimeTypeDetected events, first-seen order, no repeats."""
    names: List[str] = []
    for event in events:
        if event.event_type != IngestionEventType.MIME_TYPE_DETECTED:
            continue
        for name in event.details.get("extractors") or []:
            if name not in names:
                names.append(name)
    return names


def fold_extractor_statuses(events: List[IngestionEvent]) -> List[ExtractorStatus]:
    """
    Expects the events of a single (blob, ingestion).
    A RunExtractor event belongs to an extractor when its details name it.
    """
    _require_stored(events)
    ordered = sorted(events, key=_event_order)
    statuses = []

    for name in declared_extractors(ordered):
        updates = [
            StatusUpdate(event_time=e.event_time, status=_status_kind(e.status))
            for e in ordered
            if e.event_type == IngestionEventType.RUN_EXTRACTOR and e.extractor_name == name
        ]
        if not updates:
            # Expected to run but nothing observed yet
            updates = [StatusUpdate(event_time=None, status=ExtractorStatusKind.UNKNOWN)]
        statuses.append(ExtractorStatus(extractor_type=name, status_updates=updates))

    return statuses


def _unique_errors(events: List[IngestionEvent]) -> List[IngestionError]:
    seen = OrderedDict()
    for event in events:
        for error in event.errors:
            seen.setdefault((error.message, error.stack_trace), error)
    return list(seen.values())


def _latest_detail(events: List[IngestionEvent], key: str) -> Optional[str]:
    for event in reversed(events):
        value = event.details.get(key)
        if value:
            return value if isinstance(value, str) else ",".join(value)
    return None


def aggregate_blob_status(blob_id: str,
                          ingest_id: str,
                          events: List[IngestionEvent],
                          metadata: List[BlobMetadata],
                          infinite_loop: bool = False) -> BlobStatus:
    """
    Collapses one blob's events and metadata rows into a BlobStatus.
    A stuck blob keeps its timestamps and paths but no histories.
    """
    if not events:
        raise ValueError(f"Cannot build a status for blob {blob_id} without events.")
    _require_stored(events)

    ordered = sorted(events, key=_event_order)
    rows = sorted(metadata, key=lambda m: (m.insert_time is None, m.insert_time))

    paths: List[str] = []
    file_sizes: Dict[str, int] = {}
    for row in rows:
        if row.path not in paths:
            paths.append(row.path)
        file_sizes[row.path] = row.file_size

    common = dict(
        blob_id=blob_id,
        ingest_id=ingest_id,
        ingest_start=min(e.event_time for e in ordered),
        most_recent_event=max(e.event_time for e in ordered),
        paths=paths,
        file_size=rows[-1].file_size if rows else None,
        file_sizes=file_sizes
    )

    if infinite_loop:
        return BlobStatus(**common, infinite_loop=True)

    history = [
        EventHistoryItem(
            event_time=e.event_time,
            event_type=e.event_type.value if isinstance(e.event_type, Enum) else str(e.event_type),
            status=e.status.value if isinstance(e.status, Enum) else str(e.status)
        )
        for e in ordered
    ]

    return BlobStatus(
        **common,
        workspace_name=_latest_detail(ordered, "workspaceName"),
        mime_types=_latest_detail(ordered, "mimeTypes"),
        event_history=history,
        extractor_statuses=fold_extractor_statuses(ordered),
        errors=_unique_errors(ordered),
        infinite_loop=False
    )


def reconstruct_statuses(events: List[IngestionEvent],
                         metadata: List[BlobMetadata],
                         threshold: Optional[int] = None) -> List[BlobStatus]:
    """
    One BlobStatus per (blob, ingestion) found in `events`, most recently
    started first.
    """
    stuck = partition_stuck(events, threshold)

    grouped: Dict[Tuple[str, str], List[IngestionEvent]] = OrderedDict()
    for event in events:
        grouped.setdefault((event.blob_id, event.ingest_id), []).append(event)

    metadata_by_key: Dict[Tuple[str, str], List[BlobMetadata]] = {}
    for row in metadata:
        metadata_by_key.setdefault((row.blob_id, row.ingest_id), []).append(row)

    statuses = [
        aggregate_blob_status(
            blob_id, ingest_id, blob_events,
            metadata_by_key.get((blob_id, ingest_id), []),
            infinite_loop=blob_id in stuck
        )
        for (blob_id, ingest_id), blob_events in grouped.items()
    ]

    if stuck:
        logger.warning(f"{len(stuck)} blob(s) exceed the event threshold and may be stuck in a retry loop: {sorted(stuck)}")

    # Deterministic tie-break first, then newest ingestion start first (sort is stable)
    statuses.sort(key=lambda s: (s.blob_id, s.ingest_id))
    statuses.sort(key=lambda s: s.ingest_start, reverse=True)
    return statuses


class IngestionStatusService:
    """
    Rebuilds blob statuses for an ingestion (or every ingestion under a prefix)
    straight from the event log. Nothing is cached.
    """

    def __init__(self, repo: IEventRepository, threshold: Optional[int] = None):
        self.repo = repo
        self.threshold = threshold

    def get_statuses(self, ingest_id: str, ingest_id_is_prefix: bool = False) -> List[BlobStatus]:
        # Any StorageReadError escapes here: callers get everything or nothing.
        events = self.repo.fetch_events(ingest_id, ingest_id_is_prefix)
        metadata = self.repo.fetch_metadata(ingest_id, ingest_id_is_prefix)

        statuses = reconstruct_statuses(events, metadata, self.threshold)
        logger.info(f"Reconstructed {len(statuses)} blob statuses from {len(events)} events for '{ingest_id}'")
        return statuses
