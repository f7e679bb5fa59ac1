# services/fallback_buffer.py
import itertools
import threading
from collections import deque
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional


class FallbackBuffer:
    """
    Bounded, newest-first record list that stands in for a table while the
    database is unreachable. Keeps at most ``capacity`` records; the oldest
    drop off. All access is serialized with a lock since Flask serves
    requests on several threads.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        self._records = deque(maxlen=capacity)
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def add(self, record: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            stored = dict(record, id=next(self._ids), created_at=datetime.now())
            self._records.appendleft(stored)
            return dict(stored)

    def items(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        with self._lock:
            records = list(self._records)
        if limit is not None:
            records = records[:max(int(limit), 0)]
        return [dict(record) for record in records]

    def find(self, record_id) -> Optional[Dict[str, Any]]:
        with self._lock:
            for record in self._records:
                if str(record['id']) == str(record_id):
                    return dict(record)
        return None

    def update(self, record_id, **changes) -> bool:
        with self._lock:
            for record in self._records:
                if str(record['id']) == str(record_id):
                    record.update(changes)
                    return True
        return False

    def update_all(self, **changes) -> int:
        """Apply changes everywhere; returns how many records actually changed."""
        changed = 0
        with self._lock:
            for record in self._records:
                if any(record.get(key) != value for key, value in changes.items()):
                    record.update(changes)
                    changed += 1
        return changed

    def remove(self, record_id) -> bool:
        with self._lock:
            for record in self._records:
                if str(record['id']) == str(record_id):
                    self._records.remove(record)
                    return True
        return False

    def clear(self):
        with self._lock:
            self._records.clear()

    def count(self, predicate: Callable[[Dict[str, Any]], bool] = None) -> int:
        with self._lock:
            if predicate is None:
                return len(self._records)
            return sum(1 for record in self._records if predicate(record))
