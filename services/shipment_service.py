# services/shipment_service.py
import logging
from functools import partial
from typing import Any, Dict, List

from services.db import ConnectionManager
from services.enums import OrderStatus, ShipmentStatus
from services.errors import NotFound, StoreUnavailable
from services.query_builder import MATERIAL_SHIPMENTS, ORDER_SHIPMENTS
from services.record_store import RecordStore
from services.validation_service import (
    MATERIAL_SHIPMENT_RULES, ORDER_SHIPMENT_RULES, validate_choice, validate_date,
    validate_record, ValidationError,
)

logger = logging.getLogger(__name__)


class MaterialShipmentStore(RecordStore):
    """Inbound and outbound material movements."""

    def __init__(self, manager: ConnectionManager = None):
        super().__init__(MATERIAL_SHIPMENTS, manager,
                         validator=partial(validate_record, rules=MATERIAL_SHIPMENT_RULES))

    def update_status(self, shipment_id, status, received_date=None) -> Dict[str, Any]:
        # Any listed status may follow any other; transitions are caller-directed
        status = validate_choice(status, ShipmentStatus, 'status')
        params = [status]
        assignments = ["status = %s"]
        if received_date:
            is_valid, result = validate_date(str(received_date))
            if not is_valid:
                raise ValidationError(result, field='received_date')
            assignments.append("received_date = %s")
            params.append(result)
        self._require_store("update status of")
        query = (
            f"UPDATE material_shipments SET {', '.join(assignments)}, updated_at = CURRENT_TIMESTAMP "
            "WHERE id = %s RETURNING id"
        )
        rows = self._execute_write(query, params + [shipment_id])
        if not rows:
            raise NotFound(self.spec.entity, shipment_id)
        return rows[0]

    def list_by_item_code(self, item_code: str) -> List[Dict[str, Any]]:
        if not self.is_available():
            logger.warning("No database connection available, returning empty shipments list")
            return []
        try:
            with self.manager.connection() as conn:
                c = conn.cursor()
                c.execute("SELECT id FROM material_shipments WHERE item_code = %s ORDER BY created_at DESC",
                          (item_code,))
                ids = [row[0] for row in c.fetchall()]
                rows = {row['id']: row for row in self._fetch_many(conn, ids)}
        except StoreUnavailable:
            logger.warning("Database connection lost, returning empty shipments list")
            return []
        return [rows[record_id] for record_id in ids if record_id in rows]


class OrderShipmentStore(RecordStore):
    """Customer orders and their delivery progress."""

    def __init__(self, manager: ConnectionManager = None):
        super().__init__(ORDER_SHIPMENTS, manager,
                         validator=partial(validate_record, rules=ORDER_SHIPMENT_RULES))

    def update_status(self, order_id, status) -> Dict[str, Any]:
        status = validate_choice(status, OrderStatus, 'status')
        return self.update(order_id, {'status': status})


material_shipments = MaterialShipmentStore()
order_shipments = OrderShipmentStore()
