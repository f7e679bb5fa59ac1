# services/inventory_service.py
import logging
from functools import partial
from typing import Any, Dict, List

from services.db import ConnectionManager
from services.enums import QuantityMode
from services.errors import NotFound
from services.query_builder import CATEGORIES, INVENTORY_ITEMS, WAREHOUSES
from services.record_store import RecordStore
from services.validation_service import (
    CATEGORY_RULES, INVENTORY_ITEM_RULES, WAREHOUSE_RULES,
    validate_quantity_adjustment, validate_record,
)

logger = logging.getLogger(__name__)

# SET expressions per adjustment mode; the amount is always bound
QUANTITY_EXPRESSIONS = {
    QuantityMode.set.value: "%s",
    QuantityMode.add.value: "total_quantity + %s",
    QuantityMode.subtract.value: "GREATEST(total_quantity - %s, 0)",
}


class InventoryStore(RecordStore):
    """Inventory items, read with their category and warehouse names."""

    def __init__(self, manager: ConnectionManager = None):
        super().__init__(INVENTORY_ITEMS, manager,
                         validator=partial(validate_record, rules=INVENTORY_ITEM_RULES))

    def adjust_quantity(self, item_id, amount, mode=QuantityMode.set) -> Dict[str, Any]:
        """
        Set, add to or subtract from an item's on-hand quantity.

        Subtraction never takes the quantity below zero.
        """
        amount, mode = validate_quantity_adjustment(amount, mode)
        self._require_store("update quantity of")
        query = (
            f"UPDATE inventory_items SET total_quantity = {QUANTITY_EXPRESSIONS[mode]}, "
            "updated_at = CURRENT_TIMESTAMP WHERE id = %s RETURNING id"
        )
        rows = self._execute_write(query, (amount, item_id))
        if not rows:
            raise NotFound(self.spec.entity, item_id)
        logger.info(f"Adjusted quantity of item {item_id} ({mode} {amount}) -> {rows[0]['total_quantity']}")
        return rows[0]


class CategoryStore(RecordStore):
    def __init__(self, manager: ConnectionManager = None):
        super().__init__(CATEGORIES, manager, validator=partial(validate_record, rules=CATEGORY_RULES))


class WarehouseStore(RecordStore):
    def __init__(self, manager: ConnectionManager = None):
        super().__init__(WAREHOUSES, manager, validator=partial(validate_record, rules=WAREHOUSE_RULES))


inventory_items = InventoryStore()
categories = CategoryStore()
warehouses = WarehouseStore()


def get_all_categories() -> List[Dict[str, Any]]:
    return categories.list()


def get_all_warehouses() -> List[Dict[str, Any]]:
    return warehouses.list()
