"""RecordStore SQL and row handling against a scripted connection."""
from contextlib import contextmanager
from decimal import Decimal

import psycopg2
import pytest
from psycopg2 import errorcodes

from services.db import ConnectionManager
from services.errors import IntegrityViolation, NotFound, StoreUnavailable
from services.inventory_service import InventoryStore
from services.notification_service import NotificationStore
from services.query_builder import INVENTORY_ITEMS, NOTIFICATIONS
from services.record_store import BufferedRecordStore
from services.report_service import inventory_impact_summary, material_shipment_stats, order_shipment_stats
from services.scan_service import ScanHistoryStore
from services.shipment_service import MaterialShipmentStore
from services.validation_service import ValidationError


class UniqueViolation(psycopg2.IntegrityError):
    pgcode = errorcodes.UNIQUE_VIOLATION


class ScriptedCursor:
    def __init__(self, connection):
        self.connection = connection
        self.rows = []
        self.rowcount = -1

    def execute(self, query, params=None):
        self.connection.executed.append((query, params))
        response = self.connection.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        self.rows = response
        self.rowcount = len(response)

    def fetchall(self):
        return list(self.rows)

    def fetchone(self):
        return self.rows[0] if self.rows else None


class ScriptedConnection:
    def __init__(self, responses):
        self.responses = list(responses)
        self.executed = []
        self.commits = 0

    def cursor(self, cursor_factory=None):
        return ScriptedCursor(self)

    def commit(self):
        self.commits += 1


class ScriptedManager:
    """Answers each statement, in order, with the next scripted result."""

    pool_size = 4

    def __init__(self, *responses):
        self.conn = ScriptedConnection(responses)

    @property
    def executed(self):
        return self.conn.executed

    def is_available(self):
        return True

    @contextmanager
    def connection(self):
        yield self.conn

    @contextmanager
    def transaction(self):
        yield self.conn
        self.conn.commit()


def item_row(record_id, code='ITM-001', **overrides):
    row = {
        'id': record_id,
        'item_code': code,
        'product_name': f'Product {code}',
        'unit_of_measure': 'pcs',
        'buy_price': Decimal('2.50'),
        'location': 'Aisle 1',
        'category_id': 'CAT001',
        'warehouse_id': 'WH001',
        'total_quantity': 5,
        'category_name': 'Electronics',
        'warehouse_name': 'Main Warehouse',
    }
    row.update(overrides)
    return row


def item_fields(code='ITM-001', **overrides):
    fields = {
        'item_code': code,
        'product_name': f'Product {code}',
        'unit_of_measure': 'pcs',
        'buy_price': '2.50',
        'location': 'Aisle 1',
        'category_id': 'CAT001',
        'warehouse_id': 'WH001',
        'total_quantity': 5,
    }
    fields.update(overrides)
    return fields


FETCH_BY_IDS = f"{INVENTORY_ITEMS.base_select} WHERE i.id = ANY(%s) ORDER BY i.id"


@pytest.mark.parametrize("mode, expression", [
    ('set', "%s"),
    ('add', "total_quantity + %s"),
    ('subtract', "GREATEST(total_quantity - %s, 0)"),
])
def test_adjust_quantity_statement(mode, expression):
    manager = ScriptedManager([(7,)], [item_row(7, total_quantity=3)])

    row = InventoryStore(manager=manager).adjust_quantity(7, 3, mode)

    assert manager.executed[0] == (
        f"UPDATE inventory_items SET total_quantity = {expression}, "
        "updated_at = CURRENT_TIMESTAMP WHERE id = %s RETURNING id",
        (3, 7),
    )
    assert manager.executed[1] == (FETCH_BY_IDS, ([7],))
    assert row['total_quantity'] == 3
    assert manager.conn.commits == 1


def test_adjust_quantity_of_missing_item():
    manager = ScriptedManager([])

    with pytest.raises(NotFound):
        InventoryStore(manager=manager).adjust_quantity(404, 1, 'add')
    assert len(manager.executed) == 1


def test_create_rereads_the_enriched_row_and_get_matches():
    manager = ScriptedManager([(5,)], [item_row(5)], [item_row(5)])
    store = InventoryStore(manager=manager)

    created = store.create(item_fields())

    insert, params = manager.executed[0]
    assert insert.startswith("INSERT INTO inventory_items (")
    assert insert.endswith("updated_at) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, CURRENT_TIMESTAMP) RETURNING id")
    assert 'ITM-001' in params and Decimal('2.50') in params
    assert manager.executed[1] == (FETCH_BY_IDS, ([5],))
    assert created['category_name'] == 'Electronics'
    assert created['buy_price'] == 2.5 and isinstance(created['buy_price'], float)

    assert store.get(5) == created
    assert manager.executed[2] == (f"{INVENTORY_ITEMS.base_select} WHERE i.id = %s", (5,))


def test_update_of_missing_row_is_not_found():
    manager = ScriptedManager([])

    with pytest.raises(NotFound):
        InventoryStore(manager=manager).update(999, {'location': 'Aisle 7'})
    query, params = manager.executed[0]
    assert query == ("UPDATE inventory_items SET location = %s, updated_at = CURRENT_TIMESTAMP "
                     "WHERE id = %s RETURNING id")
    assert params == ['Aisle 7', 999]


def test_delete_many_returns_only_deleted_rows_in_id_order():
    manager = ScriptedManager([item_row(9, 'ITM-9'), item_row(3, 'ITM-3')])

    deleted = InventoryStore(manager=manager).delete_many([9, "999", 3])

    assert manager.executed == [("DELETE FROM inventory_items WHERE id = ANY(%s) RETURNING *", ([9, 999, 3],))]
    assert [row['id'] for row in deleted] == [3, 9]


@pytest.mark.parametrize("bad_id", [1.5, "2.5", "abc", True, None])
def test_delete_many_rejects_non_integer_ids(bad_id):
    manager = ScriptedManager()

    with pytest.raises(ValidationError) as exc:
        InventoryStore(manager=manager).delete_many([1, bad_id])
    assert exc.value.field == 'ids'
    assert manager.executed == []


def test_integral_ids_are_accepted_in_any_form():
    manager = ScriptedManager([])

    InventoryStore(manager=manager).delete_many(["2", 4.0, Decimal('6')])

    assert manager.executed[0][1] == ([2, 4, 6],)


def test_duplicate_item_code_is_integrity_violation():
    manager = ScriptedManager(UniqueViolation("duplicate key value violates unique constraint"))

    with pytest.raises(IntegrityViolation) as exc:
        InventoryStore(manager=manager).create(item_fields())
    assert exc.value.field == 'item_code'
    assert manager.conn.commits == 0


def test_value_rejected_by_the_database_is_validation_error():
    manager = ScriptedManager(psycopg2.DataError("value too long for type character varying(50)"))

    with pytest.raises(ValidationError) as exc:
        InventoryStore(manager=manager).create(item_fields(item_code='X' * 80))
    assert "value too long" in exc.value.message


def test_category_filter_returns_enriched_rows():
    manager = ScriptedManager([item_row(1, 'ITM-A')])

    rows = InventoryStore(manager=manager).list({'category': 'CAT001'})

    query, params = manager.executed[0]
    assert "LEFT JOIN categories c ON i.category_id = c.category_id" in query
    assert "i.category_id = %s" in query
    assert params == ['CAT001']
    assert [row['item_code'] for row in rows] == ['ITM-A']
    assert rows[0]['category_name'] == 'Electronics'


def test_list_by_item_code_keeps_newest_first_order():
    shipment = {'item_code': 'ITM-1', 'quantity': 3}
    manager = ScriptedManager([(8,), (2,)], [dict(shipment, id=2), dict(shipment, id=8)])

    rows = MaterialShipmentStore(manager=manager).list_by_item_code('ITM-1')

    assert [row['id'] for row in rows] == [8, 2]


class TestLostConnection:
    """The pool connected, then the server went away."""

    def test_reads_come_back_empty(self, lost_manager):
        items = InventoryStore(manager=lost_manager)

        assert items.list({'search': 'cable'}) == []
        assert items.get(1) is None
        assert MaterialShipmentStore(manager=lost_manager).list_by_item_code('ITM-1') == []

    def test_writes_are_store_unavailable(self, lost_manager):
        items = InventoryStore(manager=lost_manager)

        with pytest.raises(StoreUnavailable):
            items.create(item_fields())
        with pytest.raises(StoreUnavailable):
            items.adjust_quantity(1, 2, 'add')
        with pytest.raises(StoreUnavailable):
            items.delete_many([1, 2])

    def test_notifications_move_to_the_buffer(self, lost_manager):
        store = NotificationStore(manager=lost_manager)

        created = store.create_notification("Low stock", "Cable is running low", "warning")

        assert created['type'] == 'warning'
        assert store.unread_count() == 1
        assert store.mark_read(created['id']) is True
        assert store.mark_all_read() == 0
        assert [record['title'] for record in store.list()] == ["Low stock"]

    def test_scans_move_to_the_buffer(self, lost_manager):
        store = ScanHistoryStore(manager=lost_manager)
        store.save({'code': 'A'})
        store.save({'code': 'B'})

        assert store.clear() == 2

    def test_reports_come_back_empty(self, lost_manager):
        assert not any(material_shipment_stats(lost_manager).values())
        assert not any(order_shipment_stats(lost_manager).values())
        assert inventory_impact_summary(lost_manager)['items'] == []


def test_offline_delete_many_still_validates_ids():
    with pytest.raises(ValidationError):
        InventoryStore(manager=ConnectionManager(dsn=None)).delete_many([1.5])


def test_buffered_create_validates_once():
    calls = []

    def validator(fields, partial=False):
        calls.append(dict(fields))
        return dict(fields)

    manager = ScriptedManager([(1,)], [{'id': 1, 'title': 'Hello', 'message': 'World'}])
    store = BufferedRecordStore(NOTIFICATIONS, manager, validator=validator)

    created = store.create({'title': 'Hello', 'message': 'World'})

    assert created['id'] == 1
    assert calls == [{'title': 'Hello', 'message': 'World'}]
    assert manager.executed[0][0].startswith("INSERT INTO notifications (title, message")
