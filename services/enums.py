from enum import Enum


class ItemStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    discontinued = "discontinued"


class ShipmentType(str, Enum):
    inbound = "inbound"
    outbound = "outbound"


class ShipmentStatus(str, Enum):
    pending = "pending"
    shipped = "shipped"
    delivered = "delivered"


class OrderStatus(str, Enum):
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"


class OrderPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class NotificationType(str, Enum):
    info = "info"
    success = "success"
    warning = "warning"
    error = "error"


class QuantityMode(str, Enum):
    set = "set"
    add = "add"
    subtract = "subtract"


class StockStatus(str, Enum):
    low = "low"
    warning = "warning"
    normal = "normal"
