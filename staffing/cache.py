from __future__ import annotations
import logging
import threading
from collections import OrderedDict
from datetime import date
from typing import Iterable, Optional

from core.config_loader import settings

logger = logging.getLogger(__name__)

Key = tuple[int, date]


class StaffingCache:
    """Bounded LRU of assigned counts per (shift_id, date).

    Only a read aid for dashboards and overviews. The assignment engine never
    trusts it for capacity decisions and drops the affected key after every
    committed assign/unassign.

    Readers take `generation()` before querying and hand it back to `put`.
    Any invalidation in between bumps the generation, and the late write is
    dropped instead of resurrecting a count the database no longer has.
    """

    def __init__(self, maxsize: int = 4096):
        self.maxsize = maxsize
        self._data: OrderedDict[Key, int] = OrderedDict()
        self._generation = 0
        self._lock = threading.Lock()

    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self, shift_id: int, day: date) -> Optional[int]:
        with self._lock:
            key = (shift_id, day)
            if key not in self._data:
                return None
            self._data.move_to_end(key)
            return self._data[key]

    def put(self, shift_id: int, day: date, count: int, generation: Optional[int] = None) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation:
                logger.debug("stale staffing count for shift %s on %s dropped", shift_id, day)
                return False
            self._data[(shift_id, day)] = count
            self._data.move_to_end((shift_id, day))
            while len(self._data) > self.maxsize:
                self._data.popitem(last=False)
            return True

    def invalidate(self, shift_id: int, day: date) -> None:
        with self._lock:
            self._generation += 1
            self._data.pop((shift_id, day), None)
        logger.debug("staffing cache invalidated for shift %s on %s", shift_id, day)

    def invalidate_shifts(self, shift_ids: Iterable[int]) -> None:
        ids = set(shift_ids)
        if not ids:
            return
        with self._lock:
            self._generation += 1
            for key in [k for k in self._data if k[0] in ids]:
                del self._data[key]

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


staffing_cache = StaffingCache(maxsize=settings.STAFFING_CACHE_SIZE)
