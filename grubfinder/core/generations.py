"""Search generation counter used to drop results of superseded searches."""

from __future__ import annotations

import logging
from typing import Optional, TypeVar

from grubfinder.models import SearchCriterion

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SearchGenerations:
    def __init__(self) -> None:
        self._current = 0
        self._criterion: Optional[SearchCriterion] = None

    @property
    def current(self) -> int:
        return self._current

    @property
    def criterion(self) -> Optional[SearchCriterion]:
        return self._criterion

    def begin(self, criterion: SearchCriterion) -> int:
        self._current += 1
        self._criterion = criterion
        return self._current

    def is_current(self, generation: int) -> bool:
        return generation == self._current

    def accept(self, generation: int, results: T) -> Optional[T]:
        """Return ``results`` if ``generation`` is still current, otherwise None."""
        if not self.is_current(generation):
            logger.info("Discarding results of superseded search generation %d (current=%d)", generation, self._current)
            return None
        return results
