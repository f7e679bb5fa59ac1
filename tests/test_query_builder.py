"""Filtered SELECT composition: every filter value must travel as a bound parameter."""
import pytest

from services.query_builder import (
    INVENTORY_ITEMS, MATERIAL_SHIPMENTS, NOTIFICATIONS, ORDER_SHIPMENTS,
    build_filtered_query, build_select_by_id, build_where,
)

HOSTILE_VALUES = [
    "'; DROP TABLE inventory_items; --",
    "x' OR '1'='1",
    "%_\\",
    "Robert'); DELETE FROM users;--",
]


def test_no_filters_selects_everything_in_order():
    sql, params = build_filtered_query(INVENTORY_ITEMS)

    assert sql == INVENTORY_ITEMS.base_select + " ORDER BY i.updated_at DESC"
    assert params == []


def test_inventory_select_joins_category_and_warehouse_names():
    sql, _ = build_filtered_query(INVENTORY_ITEMS)

    assert "LEFT JOIN categories c ON i.category_id = c.category_id" in sql
    assert "LEFT JOIN warehouses w ON i.warehouse_id = w.warehouse_id" in sql
    assert "c.category_name" in sql
    assert "w.warehouse_name" in sql


def test_search_is_repeated_per_search_column():
    sql, params = build_filtered_query(INVENTORY_ITEMS, {'search': 'cable'})

    assert "(i.product_name ILIKE %s OR i.item_code ILIKE %s)" in sql
    assert params == ['%cable%', '%cable%']


def test_equality_filters_are_anded_in_fixed_order():
    sql, params = build_filtered_query(INVENTORY_ITEMS, {
        'warehouse': 'WH001',
        'status': 'active',
        'category': 'CAT001',
    })

    assert "WHERE i.status = %s AND i.category_id = %s AND i.warehouse_id = %s" in sql
    assert params == ['active', 'CAT001', 'WH001']


@pytest.mark.parametrize("hostile", HOSTILE_VALUES)
def test_filter_values_never_reach_the_sql_text(hostile):
    filters = {'search': hostile, 'category': hostile, 'status': hostile, 'warehouse': hostile}

    sql, params = build_filtered_query(INVENTORY_ITEMS, filters, limit=5)

    assert hostile not in sql
    assert sql.count("%s") == len(params)
    assert params.count(hostile) == 3
    assert params.count(f"%{hostile}%") == 2


def test_unknown_and_blank_filters_are_ignored():
    conditions, params = build_where(INVENTORY_ITEMS, {
        'colour': 'red',
        'status': '   ',
        'category': None,
        'search': '',
    })

    assert conditions == []
    assert params == []


def test_filters_for_other_tables_are_ignored():
    sql, params = build_filtered_query(INVENTORY_ITEMS, {'priority': 'high', 'type': 'inbound'})

    assert "WHERE" not in sql
    assert params == []


def test_shipment_filters_map_to_their_columns():
    sql, params = build_filtered_query(MATERIAL_SHIPMENTS, {
        'type': 'inbound', 'date': '2024-05-01', 'status': 'delivered',
    })

    assert "ms.status = %s AND ms.shipment_type = %s AND ms.date_shipped = %s" in sql
    assert params == ['delivered', 'inbound', '2024-05-01']


def test_order_priority_filter():
    sql, params = build_filtered_query(ORDER_SHIPMENTS, {'priority': 'high'})

    assert "os.priority = %s" in sql
    assert params == ['high']


def test_filter_values_are_trimmed():
    _, params = build_filtered_query(INVENTORY_ITEMS, {'status': '  active  '})

    assert params == ['active']


def test_limit_is_bound_last():
    sql, params = build_filtered_query(NOTIFICATIONS, {'type': 'info'}, limit=10)

    assert sql.endswith("ORDER BY n.created_at DESC LIMIT %s")
    assert params == ['info', 10]


def test_select_by_id_is_parameterized():
    assert build_select_by_id(INVENTORY_ITEMS).endswith("WHERE i.id = %s")
