# services/query_builder.py
"""
Table descriptors and filtered SELECT composition.

Only descriptor text (table, column and join names fixed in this module) is
ever formatted into SQL. Every filter value travels as a bound ``%s``
parameter.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

RECOGNIZED_FILTERS = ('search', 'status', 'category', 'warehouse', 'type', 'date', 'priority')


@dataclass(frozen=True)
class TableSpec:
    name: str
    entity: str
    alias: str
    columns: Tuple[str, ...]
    unique_key: Optional[str] = None
    search_columns: Tuple[str, ...] = ()
    filter_columns: Dict[str, str] = field(default_factory=dict)
    order_by: str = "created_at DESC"
    joins: str = ""
    extra_select: str = ""
    has_updated_at: bool = True

    def qualified(self, column: str) -> str:
        return f"{self.alias}.{column}"

    @property
    def base_select(self) -> str:
        select = f"SELECT {self.alias}.*{self.extra_select} FROM {self.name} {self.alias}"
        if self.joins:
            select += f" {self.joins}"
        return select


INVENTORY_ITEMS = TableSpec(
    name="inventory_items",
    entity="Inventory item",
    alias="i",
    columns=('item_code', 'product_name', 'unit_of_measure', 'buy_price', 'sell_price',
             'location', 'category_id', 'status', 'warehouse_id', 'total_quantity',
             'min_stock_level'),
    unique_key='item_code',
    search_columns=('product_name', 'item_code'),
    filter_columns={'category': 'category_id', 'status': 'status', 'warehouse': 'warehouse_id'},
    order_by="updated_at DESC",
    joins=("LEFT JOIN categories c ON i.category_id = c.category_id "
           "LEFT JOIN warehouses w ON i.warehouse_id = w.warehouse_id"),
    extra_select=", c.category_name, w.warehouse_name",
)

CATEGORIES = TableSpec(
    name="categories",
    entity="Category",
    alias="c",
    columns=('category_id', 'category_name', 'description'),
    unique_key='category_id',
    search_columns=('category_name', 'category_id'),
    order_by="category_name",
    has_updated_at=False,
)

WAREHOUSES = TableSpec(
    name="warehouses",
    entity="Warehouse",
    alias="w",
    columns=('warehouse_id', 'warehouse_name', 'location', 'capacity'),
    unique_key='warehouse_id',
    search_columns=('warehouse_name', 'warehouse_id', 'location'),
    order_by="warehouse_name",
    has_updated_at=False,
)

MATERIAL_SHIPMENTS = TableSpec(
    name="material_shipments",
    entity="Material shipment",
    alias="ms",
    columns=('shipment_id', 'material_id', 'material_name', 'item_code', 'quantity', 'unit',
             'shipment_type', 'source', 'destination', 'status', 'date_shipped',
             'estimated_delivery', 'received_date', 'handled_by', 'notes'),
    unique_key='shipment_id',
    search_columns=('material_name', 'shipment_id', 'source'),
    filter_columns={'status': 'status', 'type': 'shipment_type', 'date': 'date_shipped'},
)

ORDER_SHIPMENTS = TableSpec(
    name="order_shipments",
    entity="Order shipment",
    alias="os",
    columns=('order_id', 'customer_name', 'item_code', 'product_name', 'quantity',
             'total_value', 'priority', 'status', 'order_date', 'ship_date',
             'delivery_date', 'tracking_number', 'notes'),
    unique_key='order_id',
    search_columns=('order_id', 'customer_name', 'product_name', 'tracking_number'),
    filter_columns={'status': 'status', 'priority': 'priority', 'date': 'order_date'},
)

NOTIFICATIONS = TableSpec(
    name="notifications",
    entity="Notification",
    alias="n",
    columns=('title', 'message', 'type', 'is_read'),
    search_columns=('title', 'message'),
    filter_columns={'type': 'type'},
    has_updated_at=False,
)

SCAN_HISTORY = TableSpec(
    name="scan_history",
    entity="Scan record",
    alias="s",
    columns=('scanned_code', 'scan_type', 'item_id', 'product_name', 'quantity',
             'scan_status', 'scanned_by', 'notes'),
    search_columns=('scanned_code', 'product_name'),
    filter_columns={'type': 'scan_type', 'status': 'scan_status'},
    has_updated_at=False,
)


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def build_where(spec: TableSpec, filters: Optional[Dict[str, Any]]) -> Tuple[List[str], List[Any]]:
    """Return (conditions, params) for the filters this table understands."""
    conditions = []
    params = []
    filters = filters or {}

    search = filters.get('search')
    if _present(search) and spec.search_columns:
        search_conditions = [f"{spec.qualified(col)} ILIKE %s" for col in spec.search_columns]
        conditions.append(f"({' OR '.join(search_conditions)})")
        search_param = f"%{str(search).strip()}%"
        params.extend([search_param] * len(search_conditions))

    for key in RECOGNIZED_FILTERS:
        if key == 'search' or key not in spec.filter_columns:
            continue
        value = filters.get(key)
        if not _present(value):
            continue
        conditions.append(f"{spec.qualified(spec.filter_columns[key])} = %s")
        params.append(value.strip() if isinstance(value, str) else value)

    return conditions, params


def build_filtered_query(spec: TableSpec, filters: Optional[Dict[str, Any]] = None,
                         limit: Optional[int] = None) -> Tuple[str, List[Any]]:
    """Compose the filtered, ordered SELECT for ``spec``."""
    conditions, params = build_where(spec, filters)
    query = spec.base_select
    if conditions:
        query += " WHERE " + " AND ".join(conditions)
    query += f" ORDER BY {spec.qualified(spec.order_by)}"
    if limit is not None:
        query += " LIMIT %s"
        params.append(int(limit))
    return query, params


def build_select_by_id(spec: TableSpec) -> str:
    return f"{spec.base_select} WHERE {spec.qualified('id')} = %s"
