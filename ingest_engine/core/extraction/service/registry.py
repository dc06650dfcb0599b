import logging
from typing import Dict, List

from ..domain.interfaces import IExtractor

logger = logging.getLogger(__name__)


class ExtractorRegistry:
    """
    Knows every extractor available to this worker and which of them can
    handle a given media type.
    """

    def __init__(self):
        self._extractors: Dict[str, IExtractor] = {}

    def register(self, extractor: IExtractor) -> None:
        if extractor.name in self._extractors:
            raise ValueError(f"An extractor named {extractor.name} is already registered.")
        self._extractors[extractor.name] = extractor
        logger.debug(f"Registered extractor {extractor.name} for {sorted(extractor.mime_types)}")

    def candidates(self, mime_type: str, size: int) -> List[IExtractor]:
        """
        Extractors able to process the type, cheapest first.
        Ordering is total: (cost, priority, name).
        """
        capable = [e for e in self._extractors.values() if e.can_process_mime_type(mime_type)]
        return sorted(capable, key=lambda e: (e.cost(mime_type, size), e.priority, e.name))
