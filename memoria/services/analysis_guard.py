"""In-memory guard allowing at most one running analysis per recording."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from memoria.services.errors import AnalysisInProgressError

logger = logging.getLogger(__name__)


class AnalysisGuard:
    """Track recording ids with an analysis in flight.

    Claims are checked and registered without awaiting in between, so on a
    single event loop two requests for the same id cannot both succeed.
    """

    def __init__(self) -> None:
        self._in_flight: set[str] = set()

    def is_running(self, record_id: str) -> bool:
        return record_id in self._in_flight

    @contextmanager
    def claim(self, record_id: str) -> Iterator[None]:
        if record_id in self._in_flight:
            logger.info("Análisis ya en curso para la grabación %s", record_id)
            raise AnalysisInProgressError(record_id)
        self._in_flight.add(record_id)
        try:
            yield
        finally:
            self._in_flight.discard(record_id)


__all__ = ["AnalysisGuard"]
