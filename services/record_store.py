# services/record_store.py
"""
Generic CRUD over a TableSpec.

Each operation asks the connection manager whether the database is
available and branches on the answer:
    - reads return an empty result ([] or None),
    - writes raise StoreUnavailable.
A connection lost mid-request is treated the same way. BufferedRecordStore
replaces both branches with an in-process buffer.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Optional

import psycopg2
from psycopg2 import errorcodes

from services.db import ConnectionManager, dict_cursor, get_manager
from services.errors import IntegrityViolation, NotFound, StoreUnavailable
from services.fallback_buffer import FallbackBuffer
from services.query_builder import TableSpec, build_filtered_query, build_select_by_id
from services.validation_service import ValidationError

logger = logging.getLogger(__name__)


def shape_row(row) -> Optional[Dict[str, Any]]:
    """Plain dict with money columns as float."""
    if row is None:
        return None
    return {key: float(value) if isinstance(value, Decimal) else value
            for key, value in dict(row).items()}


def coerce_id(record_id) -> int:
    if isinstance(record_id, bool):
        raise ValidationError("ids must be integers", field="ids")
    try:
        as_decimal = Decimal(str(record_id))
    except InvalidOperation:
        raise ValidationError("ids must be integers", field="ids")
    if not as_decimal.is_finite() or as_decimal != as_decimal.to_integral_value():
        raise ValidationError("ids must be integers", field="ids")
    return int(as_decimal)


class RecordStore:
    def __init__(self, spec: TableSpec, manager: ConnectionManager = None,
                 validator: Callable[..., Dict[str, Any]] = None):
        self.spec = spec
        self._manager = manager
        self.validator = validator

    @property
    def manager(self) -> ConnectionManager:
        return self._manager or get_manager()

    def is_available(self) -> bool:
        return self.manager.is_available()

    def _clean(self, fields, partial=False) -> Dict[str, Any]:
        if self.validator is not None:
            fields = self.validator(fields, partial=partial)
        return {key: value for key, value in (fields or {}).items() if key in self.spec.columns}

    def _require_store(self, action: str):
        if not self.is_available():
            logger.warning(f"No database connection available, cannot {action} {self.spec.entity.lower()}")
            raise StoreUnavailable()

    def _integrity_error(self) -> IntegrityViolation:
        key = self.spec.unique_key
        return IntegrityViolation(f"{self.spec.entity} with this {key or 'value'} already exists", field=key)

    def _execute_write(self, query: str, params) -> List[Dict[str, Any]]:
        """Run a write in one transaction and return the affected ids' rows."""
        try:
            with self.manager.transaction() as conn:
                c = conn.cursor()
                c.execute(query, params)
                ids = [row[0] for row in c.fetchall()]
                return self._fetch_many(conn, ids)
        except psycopg2.IntegrityError as e:
            if e.pgcode == errorcodes.UNIQUE_VIOLATION:
                raise self._integrity_error() from e
            if e.pgcode == errorcodes.CHECK_VIOLATION:
                raise ValidationError(f"{self.spec.entity} values violate a constraint") from e
            raise
        except psycopg2.DataError as e:
            # Too long for its column, out of numeric range and the like
            raise ValidationError(f"Invalid value: {str(e).strip() or 'rejected by the database'}") from e

    def _fetch_many(self, conn, ids: List[int]) -> List[Dict[str, Any]]:
        if not ids:
            return []
        c = dict_cursor(conn)
        c.execute(
            f"{self.spec.base_select} WHERE {self.spec.qualified('id')} = ANY(%s) "
            f"ORDER BY {self.spec.qualified('id')}",
            (list(ids),),
        )
        return [shape_row(row) for row in c.fetchall()]

    # Database operations; these raise StoreUnavailable when the connection fails

    def _select(self, filters, limit) -> List[Dict[str, Any]]:
        query, params = build_filtered_query(self.spec, filters, limit)
        with self.manager.connection() as conn:
            c = dict_cursor(conn)
            c.execute(query, params)
            return [shape_row(row) for row in c.fetchall()]

    def _select_one(self, record_id) -> Dict[str, Any]:
        with self.manager.connection() as conn:
            c = dict_cursor(conn)
            c.execute(build_select_by_id(self.spec), (record_id,))
            row = c.fetchone()
        if row is None:
            raise NotFound(self.spec.entity, record_id)
        return shape_row(row)

    def _insert(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """INSERT already-validated values."""
        columns = list(values)
        if self.spec.has_updated_at:
            column_sql = ", ".join(columns + ["updated_at"])
            value_sql = ", ".join(["%s"] * len(columns) + ["CURRENT_TIMESTAMP"])
        else:
            column_sql = ", ".join(columns)
            value_sql = ", ".join(["%s"] * len(columns))
        if column_sql:
            query = f"INSERT INTO {self.spec.name} ({column_sql}) VALUES ({value_sql}) RETURNING id"
        else:
            query = f"INSERT INTO {self.spec.name} DEFAULT VALUES RETURNING id"
        return self._execute_write(query, [values[col] for col in columns])[0]

    def _apply_update(self, record_id, values: Dict[str, Any]) -> Dict[str, Any]:
        assignments = [f"{col} = %s" for col in values]
        if self.spec.has_updated_at:
            assignments.append("updated_at = CURRENT_TIMESTAMP")
        if not assignments:
            return self._select_one(record_id)
        query = f"UPDATE {self.spec.name} SET {', '.join(assignments)} WHERE id = %s RETURNING id"
        rows = self._execute_write(query, list(values.values()) + [record_id])
        if not rows:
            raise NotFound(self.spec.entity, record_id)
        return rows[0]

    def _delete_row(self, record_id) -> Dict[str, Any]:
        with self.manager.transaction() as conn:
            c = dict_cursor(conn)
            c.execute(f"DELETE FROM {self.spec.name} WHERE id = %s RETURNING *", (record_id,))
            row = c.fetchone()
        if row is None:
            raise NotFound(self.spec.entity, record_id)
        return shape_row(row)

    def _delete_rows(self, ids: List[int]) -> List[Dict[str, Any]]:
        with self.manager.transaction() as conn:
            c = dict_cursor(conn)
            c.execute(f"DELETE FROM {self.spec.name} WHERE id = ANY(%s) RETURNING *", (ids,))
            rows = c.fetchall()
        return sorted((shape_row(row) for row in rows), key=lambda row: row['id'])

    # Reads

    def list(self, filters: Dict[str, Any] = None, limit: int = None) -> List[Dict[str, Any]]:
        if not self.is_available():
            logger.warning(f"No database connection available, returning empty {self.spec.name} list")
            return []
        try:
            return self._select(filters, limit)
        except StoreUnavailable:
            logger.warning(f"Database connection lost, returning empty {self.spec.name} list")
            return []

    def get(self, record_id) -> Optional[Dict[str, Any]]:
        """Row by id; NotFound when absent, None when the store is unavailable."""
        if not self.is_available():
            logger.warning(f"No database connection available, returning null for {self.spec.entity.lower()}")
            return None
        try:
            return self._select_one(record_id)
        except StoreUnavailable:
            logger.warning(f"Database connection lost, returning null for {self.spec.entity.lower()}")
            return None

    # Writes

    def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        values = self._clean(fields)
        self._require_store("create")
        return self._insert(values)

    def update(self, record_id, fields: Dict[str, Any]) -> Dict[str, Any]:
        values = self._clean(fields, partial=True)
        self._require_store("update")
        return self._apply_update(record_id, values)

    def delete(self, record_id) -> Dict[str, Any]:
        self._require_store("delete")
        return self._delete_row(record_id)

    def delete_many(self, ids: Iterable[Any]) -> List[Dict[str, Any]]:
        ids = [coerce_id(record_id) for record_id in (ids or [])]
        if not ids:
            return []
        self._require_store("delete multiple")
        return self._delete_rows(ids)


class BufferedRecordStore(RecordStore):
    """
    A store for advisory records (notifications, scan logs). When the
    database is unavailable, or the connection drops during a call, the
    operation is served from a bounded in-process buffer instead of failing.
    """

    default_limit = None

    def __init__(self, spec: TableSpec, manager: ConnectionManager = None,
                 validator: Callable[..., Dict[str, Any]] = None, capacity: int = 20):
        super().__init__(spec, manager, validator)
        self.buffer = FallbackBuffer(capacity)

    def _prepare(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Fill defaults on a validated record before it is stored."""
        return values

    def _with_fallback(self, database_call: Callable[[], Any], buffer_call: Callable[[], Any]):
        if self.is_available():
            try:
                return database_call()
            except StoreUnavailable:
                logger.warning(f"Database connection lost, {self.spec.name} served from memory")
        return buffer_call()

    def _matches(self, record: Dict[str, Any], filters: Dict[str, Any]) -> bool:
        for key, column in self.spec.filter_columns.items():
            wanted = filters.get(key)
            if wanted not in (None, '') and record.get(column) != wanted:
                return False
        search = filters.get('search')
        if search:
            needle = str(search).lower()
            return any(needle in str(record.get(col) or '').lower() for col in self.spec.search_columns)
        return True

    def _buffer_add(self, values: Dict[str, Any]) -> Dict[str, Any]:
        logger.warning(f"Database not available, {self.spec.entity.lower()} kept in memory")
        return self.buffer.add({column: values.get(column) for column in self.spec.columns})

    def _buffer_list(self, filters, limit) -> List[Dict[str, Any]]:
        records = [record for record in self.buffer.items() if self._matches(record, filters or {})]
        return records[:limit] if limit is not None else records

    def _buffer_get(self, record_id) -> Dict[str, Any]:
        record = self.buffer.find(record_id)
        if record is None:
            raise NotFound(self.spec.entity, record_id)
        return record

    def _buffer_update(self, record_id, values) -> Dict[str, Any]:
        if not self.buffer.update(record_id, **values):
            raise NotFound(self.spec.entity, record_id)
        return self._buffer_get(record_id)

    def _buffer_delete(self, record_id) -> Dict[str, Any]:
        record = self._buffer_get(record_id)
        self.buffer.remove(record_id)
        return record

    def _buffer_delete_many(self, ids: List[int]) -> List[Dict[str, Any]]:
        deleted = []
        for record_id in ids:
            record = self.buffer.find(record_id)
            if record is not None and self.buffer.remove(record_id):
                deleted.append(record)
        return deleted

    def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        values = self._prepare(self._clean(fields))
        return self._with_fallback(lambda: self._insert(values), lambda: self._buffer_add(values))

    def list(self, filters: Dict[str, Any] = None, limit: int = None) -> List[Dict[str, Any]]:
        limit = self.default_limit if limit is None else limit
        return self._with_fallback(lambda: self._select(filters, limit),
                                   lambda: self._buffer_list(filters, limit))

    def get(self, record_id) -> Optional[Dict[str, Any]]:
        return self._with_fallback(lambda: self._select_one(record_id),
                                   lambda: self._buffer_get(record_id))

    def update(self, record_id, fields: Dict[str, Any]) -> Dict[str, Any]:
        values = self._clean(fields, partial=True)
        return self._with_fallback(lambda: self._apply_update(record_id, values),
                                   lambda: self._buffer_update(record_id, values))

    def delete(self, record_id) -> Dict[str, Any]:
        return self._with_fallback(lambda: self._delete_row(record_id),
                                   lambda: self._buffer_delete(record_id))

    def delete_many(self, ids: Iterable[Any]) -> List[Dict[str, Any]]:
        ids = [coerce_id(record_id) for record_id in (ids or [])]
        if not ids:
            return []
        return self._with_fallback(lambda: self._delete_rows(ids),
                                   lambda: self._buffer_delete_many(ids))
