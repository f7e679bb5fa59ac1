# services/validation_service.py
"""
Input validation for record fields.

Every store validates its input here before touching the database, so a
ValidationError always means "nothing was written" and names the failing
field.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Tuple

from services.enums import (
    ItemStatus, ShipmentType, ShipmentStatus, OrderStatus, OrderPriority,
    NotificationType, QuantityMode,
)


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, message: str, field: str = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


INVENTORY_ITEM_RULES = {
    'required': ('item_code', 'product_name', 'unit_of_measure', 'buy_price', 'location'),
    'choices': {'status': ItemStatus},
    'integers': ('total_quantity', 'min_stock_level'),
    'decimals': ('buy_price', 'sell_price'),
    'non_negative': ('buy_price', 'sell_price', 'total_quantity', 'min_stock_level'),
}

CATEGORY_RULES = {
    'required': ('category_id', 'category_name'),
}

WAREHOUSE_RULES = {
    'required': ('warehouse_id', 'warehouse_name'),
    'integers': ('capacity',),
    'non_negative': ('capacity',),
}

MATERIAL_SHIPMENT_RULES = {
    'required': ('shipment_id', 'material_name', 'quantity', 'unit', 'shipment_type',
                 'source', 'destination'),
    'choices': {'shipment_type': ShipmentType, 'status': ShipmentStatus},
    'integers': ('quantity',),
    'non_negative': ('quantity',),
    'dates': ('date_shipped', 'estimated_delivery', 'received_date'),
}

ORDER_SHIPMENT_RULES = {
    'required': ('order_id', 'customer_name', 'product_name', 'quantity'),
    'choices': {'priority': OrderPriority, 'status': OrderStatus},
    'integers': ('quantity',),
    'decimals': ('total_value',),
    'non_negative': ('quantity', 'total_value'),
    'dates': ('order_date', 'ship_date', 'delivery_date'),
}

NOTIFICATION_RULES = {
    'required': ('title', 'message'),
    'choices': {'type': NotificationType},
}

SCAN_RULES = {
    'required': ('scanned_code',),
    'integers': ('quantity', 'item_id'),
    'non_negative': ('quantity',),
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def sanitize_int(value: Any, min_val: int = None, max_val: int = None, default: int = 0) -> int:
    """
    Safely convert value to integer with optional range clamping.
    """
    try:
        result = int(value)
        if min_val is not None and result < min_val:
            return min_val
        if max_val is not None and result > max_val:
            return max_val
        return result
    except (ValueError, TypeError):
        return default


def validate_date(date_str: str, format: str = '%Y-%m-%d') -> Tuple[bool, str]:
    """
    Validate date string format.
    Returns (is_valid, sanitized_date or error_message)
    """
    if not date_str:
        return True, ''  # Empty is valid (optional field)

    try:
        parsed = datetime.strptime(date_str.strip(), format)
        return True, parsed.strftime(format)
    except ValueError:
        return False, f'Invalid date format. Expected {format}'


def validate_choice(value: Any, choices, field: str) -> str:
    """Return the enumeration value for ``value`` or raise ValidationError."""
    allowed = [member.value for member in choices]
    value = value.value if isinstance(value, choices) else str(value).strip()
    if value not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(allowed)}", field=field)
    return value


def validate_record(fields: Dict[str, Any], rules: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Check ``fields`` against ``rules`` and return a cleaned copy.

    With ``partial=True`` (updates) required fields are only checked when
    present. Blank optional values become None.
    """
    if not isinstance(fields, dict):
        raise ValidationError("Record fields must be an object")

    cleaned = {}
    for key, value in fields.items():
        if isinstance(value, str):
            value = value.strip()
        cleaned[key] = None if _is_blank(value) else value

    for field in rules.get('required', ()):
        if (not partial or field in cleaned) and cleaned.get(field) is None:
            raise ValidationError(f"{field} is required", field=field)

    for field, choices in rules.get('choices', {}).items():
        if cleaned.get(field) is not None:
            cleaned[field] = validate_choice(cleaned[field], choices, field)

    for field in rules.get('integers', ()):
        value = cleaned.get(field)
        if value is None:
            continue
        if isinstance(value, bool):
            raise ValidationError(f"{field} must be a whole number", field=field)
        try:
            as_decimal = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(f"{field} must be a whole number", field=field)
        if not as_decimal.is_finite() or as_decimal != as_decimal.to_integral_value():
            raise ValidationError(f"{field} must be a whole number", field=field)
        cleaned[field] = int(as_decimal)

    for field in rules.get('decimals', ()):
        value = cleaned.get(field)
        if value is None:
            continue
        try:
            cleaned[field] = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number", field=field)
        if not cleaned[field].is_finite():
            raise ValidationError(f"{field} must be a number", field=field)

    for field in rules.get('non_negative', ()):
        value = cleaned.get(field)
        if value is not None and value < 0:
            raise ValidationError(f"{field} must not be negative", field=field)

    for field in rules.get('dates', ()):
        value = cleaned.get(field)
        if value is None or isinstance(value, (date, datetime)):
            continue
        is_valid, result = validate_date(str(value))
        if not is_valid:
            raise ValidationError(result, field=field)
        cleaned[field] = result

    return cleaned


def validate_quantity_adjustment(amount: Any, mode: Any) -> Tuple[int, str]:
    """Validate an adjust-quantity request; returns (amount, mode)."""
    mode = validate_choice(mode if mode is not None else QuantityMode.set, QuantityMode, 'mode')
    cleaned = validate_record({'amount': amount}, {
        'required': ('amount',),
        'integers': ('amount',),
        'non_negative': ('amount',),
    })
    return cleaned['amount'], mode
