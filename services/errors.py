# services/errors.py
"""Store-level error taxonomy.

``ValidationError`` lives in ``services.validation_service`` next to the
validators that raise it.
"""


class StoreError(Exception):
    """Base class for failures raised by the record stores."""

    def __init__(self, message: str, field: str = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


class StoreUnavailable(StoreError):
    """The backing database is not reachable."""

    def __init__(self, message: str = "Database connection not available"):
        super().__init__(message)


class NotFound(StoreError):
    """No row with the requested id."""

    def __init__(self, entity: str, record_id):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} {record_id} not found", field="id")


class IntegrityViolation(StoreError):
    """A uniqueness constraint rejected the write."""
