# routes/inventory.py
import logging

from flask import Blueprint, request, jsonify
from flask_login import login_required

from services.enums import NotificationType
from services.inventory_service import inventory_items, get_all_categories, get_all_warehouses
from services.notification_service import notify
from services.report_service import inventory_stats, inventory_impact_summary
from services.validation_service import ValidationError, sanitize_int

logger = logging.getLogger(__name__)

inventory_bp = Blueprint("inventory", __name__)

INVENTORY_FILTERS = ('search', 'category', 'status', 'warehouse')


def request_filters(keys):
    """Recognized filter keys from the query string; blanks are dropped by the query builder."""
    return {key: request.args.get(key) for key in keys if key in request.args}


def request_limit(default=None, max_val=1000):
    if 'limit' not in request.args:
        return default
    return sanitize_int(request.args.get('limit'), min_val=1, max_val=max_val, default=default)


def json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


@inventory_bp.route('/inventory', methods=['GET'])
@login_required
def list_items():
    items = inventory_items.list(request_filters(INVENTORY_FILTERS), request_limit())
    return jsonify({"success": True, "data": items})


@inventory_bp.route('/inventory', methods=['POST'])
@login_required
def create_item():
    item = inventory_items.create(json_body())
    logger.info(f"Inventory item created: {item['item_code']}")
    notify("Item Added", f"{item['product_name']} ({item['item_code']}) was added to inventory",
           NotificationType.success.value)
    return jsonify({"success": True, "data": item}), 201


@inventory_bp.route('/inventory/<int:item_id>', methods=['GET'])
@login_required
def get_item(item_id):
    item = inventory_items.get(item_id)
    return jsonify({"success": True, "data": item})


@inventory_bp.route('/inventory/<int:item_id>', methods=['PUT'])
@login_required
def update_item(item_id):
    item = inventory_items.update(item_id, json_body())
    notify("Item Updated", f"{item['product_name']} ({item['item_code']}) was updated")
    return jsonify({"success": True, "data": item})


@inventory_bp.route('/inventory/<int:item_id>', methods=['DELETE'])
@login_required
def delete_item(item_id):
    item = inventory_items.delete(item_id)
    notify("Item Deleted", f"{item['product_name']} ({item['item_code']}) was removed",
           NotificationType.warning.value)
    return jsonify({"success": True, "data": item})


@inventory_bp.route('/inventory/delete-multiple', methods=['POST'])
@login_required
def delete_items():
    ids = json_body().get('ids')
    if not isinstance(ids, list):
        raise ValidationError("ids must be a list", field="ids")
    deleted = inventory_items.delete_many(ids)
    if deleted:
        notify("Items Deleted", f"{len(deleted)} inventory item(s) were removed",
               NotificationType.warning.value)
    return jsonify({"success": True, "data": deleted, "deleted_count": len(deleted)})


@inventory_bp.route('/inventory/<int:item_id>/quantity', methods=['POST'])
@login_required
def adjust_quantity(item_id):
    data = json_body()
    item = inventory_items.adjust_quantity(item_id, data.get('amount'), data.get('mode'))
    notify("Quantity Updated", f"{item['product_name']} now has {item['total_quantity']} {item['unit_of_measure']}")
    return jsonify({"success": True, "data": item})


@inventory_bp.route('/inventory/stats')
@login_required
def item_stats():
    return jsonify({"success": True, "data": inventory_stats()})


@inventory_bp.route('/inventory/impact')
@login_required
def item_impact():
    return jsonify({"success": True, "data": inventory_impact_summary()})


@inventory_bp.route('/categories')
@login_required
def list_categories():
    return jsonify({"success": True, "data": get_all_categories()})


@inventory_bp.route('/warehouses')
@login_required
def list_warehouses():
    return jsonify({"success": True, "data": get_all_warehouses()})
