# services/scan_service.py
import logging
from functools import partial
from typing import Any, Dict

from config import SCAN_BUFFER_SIZE
from services.db import ConnectionManager
from services.query_builder import SCAN_HISTORY
from services.record_store import BufferedRecordStore
from services.validation_service import SCAN_RULES, validate_record

logger = logging.getLogger(__name__)

# Keys sent by the barcode page -> scan_history columns
SCAN_FIELD_ALIASES = {
    'code': 'scanned_code',
    'type': 'scan_type',
    'itemId': 'item_id',
    'productName': 'product_name',
    'status': 'scan_status',
    'scannedBy': 'scanned_by',
}

SCAN_DEFAULTS = {
    'scan_type': 'barcode',
    'quantity': 1,
    'scan_status': 'scanned',
    'scanned_by': 'unknown',
}


def normalize_scan(scan: Dict[str, Any]) -> Dict[str, Any]:
    return {SCAN_FIELD_ALIASES.get(key, key): value for key, value in (scan or {}).items()}


class ScanHistoryStore(BufferedRecordStore):
    """Barcode scan log; best-effort like notifications."""

    default_limit = 100

    def __init__(self, manager: ConnectionManager = None, capacity: int = SCAN_BUFFER_SIZE):
        super().__init__(SCAN_HISTORY, manager,
                         validator=partial(validate_record, rules=SCAN_RULES),
                         capacity=capacity)

    def _clean(self, fields, partial=False) -> Dict[str, Any]:
        return super()._clean(normalize_scan(fields), partial=partial)

    def _prepare(self, values: Dict[str, Any]) -> Dict[str, Any]:
        for key, default in SCAN_DEFAULTS.items():
            if values.get(key) is None:
                values[key] = default
        return values

    def save(self, scan: Dict[str, Any]) -> Dict[str, Any]:
        record = self.create(scan)
        logger.info(f"Scan saved: {record['scanned_code']} ({record['scan_status']})")
        return record

    def _db_clear(self) -> int:
        with self.manager.transaction() as conn:
            c = conn.cursor()
            c.execute("DELETE FROM scan_history")
            return c.rowcount

    def _buffer_clear(self) -> int:
        removed = self.buffer.count()
        self.buffer.clear()
        return removed

    def clear(self) -> int:
        return self._with_fallback(self._db_clear, self._buffer_clear)


scan_history = ScanHistoryStore()
