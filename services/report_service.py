# services/report_service.py
"""
Inventory and shipment statistics.

Independent COUNT/SUM statements are issued concurrently, each on its own
pooled connection, and combined by key; completion order does not matter.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Tuple

from config import LOW_STOCK_THRESHOLD, WARNING_STOCK_FACTOR
from services.db import ConnectionManager, dict_cursor, get_manager
from services.enums import ItemStatus, OrderPriority, OrderStatus, ShipmentStatus, ShipmentType, StockStatus
from services.errors import StoreUnavailable

logger = logging.getLogger(__name__)

MAX_PARALLEL_QUERIES = 4

EMPTY_IMPACT_SUMMARY = {
    'total_items': 0,
    'low_stock_items': 0,
    'warning_items': 0,
    'total_pending_inbound': 0,
    'total_pending_outbound': 0,
}


def run_scalar_queries(queries: Dict[str, Tuple[str, tuple]], manager: ConnectionManager) -> Dict[str, Any]:
    """Run {key: (sql, params)} concurrently; returns {key: first column of first row}."""
    def run(query, params):
        with manager.connection() as conn:
            c = conn.cursor()
            c.execute(query, params)
            return c.fetchone()[0]

    # At most half the pool per call, so concurrent stats requests all make progress
    workers = max(1, min(len(queries), MAX_PARALLEL_QUERIES, manager.pool_size // 2))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {key: executor.submit(run, query, params) for key, (query, params) in queries.items()}
        return {key: future.result() for key, future in futures.items()}


def _collect(queries: Dict[str, Tuple[str, tuple]], manager: ConnectionManager, what: str) -> Optional[Dict[str, Any]]:
    """Scalar results, or None when the database is unavailable or drops mid-query."""
    if not manager.is_available():
        logger.warning(f"No database connection available, returning empty {what}")
        return None
    try:
        return run_scalar_queries(queries, manager)
    except StoreUnavailable:
        logger.warning(f"Database connection lost, returning empty {what}")
        return None


def inventory_stats(manager: ConnectionManager = None) -> Dict[str, Any]:
    manager = manager or get_manager()
    results = _collect({
        'total_items': ("SELECT COUNT(*) FROM inventory_items", ()),
        'active_items': ("SELECT COUNT(*) FROM inventory_items WHERE status = %s", (ItemStatus.active.value,)),
        'low_stock_items': ("SELECT COUNT(*) FROM inventory_items WHERE total_quantity < %s",
                            (LOW_STOCK_THRESHOLD,)),
        'total_value': ("SELECT COALESCE(SUM(buy_price * total_quantity), 0) FROM inventory_items", ()),
    }, manager, "inventory stats")
    if results is None:
        return {'total_items': 0, 'active_items': 0, 'low_stock_items': 0, 'total_value': 0}
    return {
        'total_items': int(results['total_items']),
        'active_items': int(results['active_items']),
        'low_stock_items': int(results['low_stock_items']),
        'total_value': float(results['total_value']),
    }


def material_shipment_stats(manager: ConnectionManager = None) -> Dict[str, int]:
    manager = manager or get_manager()
    count_where = "SELECT COUNT(*) FROM material_shipments WHERE {} = %s"
    queries = {
        'total_shipments': ("SELECT COUNT(*) FROM material_shipments", ()),
        'pending_shipments': (count_where.format('status'), (ShipmentStatus.pending.value,)),
        'shipped_shipments': (count_where.format('status'), (ShipmentStatus.shipped.value,)),
        'delivered_shipments': (count_where.format('status'), (ShipmentStatus.delivered.value,)),
        'inbound_shipments': (count_where.format('shipment_type'), (ShipmentType.inbound.value,)),
        'outbound_shipments': (count_where.format('shipment_type'), (ShipmentType.outbound.value,)),
    }
    results = _collect(queries, manager, "shipment stats")
    if results is None:
        return {key: 0 for key in queries}
    return {key: int(value) for key, value in results.items()}


def order_shipment_stats(manager: ConnectionManager = None) -> Dict[str, Any]:
    manager = manager or get_manager()
    count_where = "SELECT COUNT(*) FROM order_shipments WHERE {} = %s"
    queries = {'total_orders': ("SELECT COUNT(*) FROM order_shipments", ())}
    for status in OrderStatus:
        queries[f'{status.value}_orders'] = (count_where.format('status'), (status.value,))
    for priority in OrderPriority:
        queries[f'{priority.value}_priority'] = (count_where.format('priority'), (priority.value,))
    queries['total_value'] = ("SELECT COALESCE(SUM(total_value), 0) FROM order_shipments", ())

    results = _collect(queries, manager, "order stats")
    if results is None:
        return {key: 0 for key in queries}
    stats = {key: int(value) for key, value in results.items() if key != 'total_value'}
    stats['total_value'] = float(results['total_value'])
    return stats


def classify_stock(projected, min_stock_level) -> str:
    """low at or under the minimum, warning up to 1.5x the minimum, else normal."""
    if projected <= min_stock_level:
        return StockStatus.low.value
    if projected <= min_stock_level * WARNING_STOCK_FACTOR:
        return StockStatus.warning.value
    return StockStatus.normal.value


def _latest(current, candidate):
    if candidate is None:
        return current
    if current is None or candidate > current:
        return candidate
    return current


def summarize_inventory_impact(rows: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Fold shipment rows (joined with their inventory item) into per-item
    stock projections.

    Delivered shipments move the projection; shipped-but-undelivered ones
    are reported as pending only. Items no shipment references never appear.
    """
    impact = {}

    for row in rows:
        item_code = row.get('item_code')
        if not item_code:
            continue
        if item_code not in impact:
            impact[item_code] = {
                'item_code': item_code,
                'material_name': row.get('material_name') or 'Unknown',
                'current_stock': row.get('current_stock') or 0,
                'min_stock_level': row.get('min_stock_level') or 0,
                'inbound_quantity': 0,
                'outbound_quantity': 0,
                'pending_inbound': 0,
                'pending_outbound': 0,
                'stock_status': StockStatus.normal.value,
                'last_updated': None,
            }
        item = impact[item_code]
        quantity = row.get('quantity') or 0
        status = row.get('status')

        if row.get('shipment_type') == ShipmentType.inbound.value:
            if status == ShipmentStatus.delivered.value:
                item['inbound_quantity'] += quantity
                item['last_updated'] = _latest(item['last_updated'], row.get('received_date'))
            elif status == ShipmentStatus.shipped.value:
                item['pending_inbound'] += quantity
        elif row.get('shipment_type') == ShipmentType.outbound.value:
            if status == ShipmentStatus.delivered.value:
                item['outbound_quantity'] += quantity
                item['last_updated'] = _latest(item['last_updated'], row.get('date_shipped'))
            elif status == ShipmentStatus.shipped.value:
                item['pending_outbound'] += quantity

    items = list(impact.values())
    for item in items:
        projected = item['current_stock'] + item['inbound_quantity'] - item['outbound_quantity']
        item['projected_stock'] = projected
        item['stock_status'] = classify_stock(projected, item['min_stock_level'])

    return {
        'items': items,
        'summary': {
            'total_items': len(items),
            'low_stock_items': sum(1 for item in items if item['stock_status'] == StockStatus.low.value),
            'warning_items': sum(1 for item in items if item['stock_status'] == StockStatus.warning.value),
            'total_pending_inbound': sum(item['pending_inbound'] for item in items),
            'total_pending_outbound': sum(item['pending_outbound'] for item in items),
        },
    }


def _impact_rows(manager: ConnectionManager) -> List[Dict[str, Any]]:
    with manager.connection() as conn:
        c = dict_cursor(conn)
        c.execute("""
            SELECT
                ms.item_code,
                ms.quantity,
                ms.shipment_type,
                ms.status,
                ms.date_shipped,
                ms.received_date,
                i.product_name AS material_name,
                i.total_quantity AS current_stock,
                i.min_stock_level
            FROM material_shipments ms
            LEFT JOIN inventory_items i ON ms.item_code = i.item_code
            WHERE ms.shipment_type IN (%s, %s)
            ORDER BY ms.date_shipped DESC NULLS LAST
        """, (ShipmentType.inbound.value, ShipmentType.outbound.value))
        return [dict(row) for row in c.fetchall()]


def inventory_impact_summary(manager: ConnectionManager = None) -> Dict[str, Any]:
    manager = manager or get_manager()
    if not manager.is_available():
        logger.warning("No database connection available, returning empty inventory impact summary")
        return {'items': [], 'summary': dict(EMPTY_IMPACT_SUMMARY)}
    try:
        rows = _impact_rows(manager)
    except StoreUnavailable:
        logger.warning("Database connection lost, returning empty inventory impact summary")
        return {'items': [], 'summary': dict(EMPTY_IMPACT_SUMMARY)}
    return summarize_inventory_impact(rows)
