# routes/shipments.py
from flask import Blueprint, request, jsonify
from flask_login import login_required

from routes.inventory import json_body, request_filters, request_limit
from services.notification_service import notify
from services.report_service import material_shipment_stats, order_shipment_stats
from services.shipment_service import material_shipments, order_shipments

shipments_bp = Blueprint("shipments", __name__)

MATERIAL_FILTERS = ('search', 'status', 'type', 'date')
ORDER_FILTERS = ('search', 'status', 'priority', 'date')


# Material shipments

@shipments_bp.route('/material-shipments', methods=['GET'])
@login_required
def list_material_shipments():
    item_code = request.args.get('item_code')
    if item_code:
        return jsonify({"success": True, "data": material_shipments.list_by_item_code(item_code)})
    shipments = material_shipments.list(request_filters(MATERIAL_FILTERS), request_limit())
    return jsonify({"success": True, "data": shipments})


@shipments_bp.route('/material-shipments', methods=['POST'])
@login_required
def create_material_shipment():
    shipment = material_shipments.create(json_body())
    notify("Shipment Created",
           f"{shipment['shipment_type'].capitalize()} shipment {shipment['shipment_id']} "
           f"for {shipment['quantity']} {shipment['unit']} of {shipment['material_name']}")
    return jsonify({"success": True, "data": shipment}), 201


@shipments_bp.route('/material-shipments/<int:shipment_id>', methods=['GET'])
@login_required
def get_material_shipment(shipment_id):
    return jsonify({"success": True, "data": material_shipments.get(shipment_id)})


@shipments_bp.route('/material-shipments/<int:shipment_id>', methods=['PUT'])
@login_required
def update_material_shipment(shipment_id):
    shipment = material_shipments.update(shipment_id, json_body())
    return jsonify({"success": True, "data": shipment})


@shipments_bp.route('/material-shipments/<int:shipment_id>', methods=['DELETE'])
@login_required
def delete_material_shipment(shipment_id):
    return jsonify({"success": True, "data": material_shipments.delete(shipment_id)})


@shipments_bp.route('/material-shipments/<int:shipment_id>/status', methods=['POST'])
@login_required
def update_material_shipment_status(shipment_id):
    data = json_body()
    shipment = material_shipments.update_status(shipment_id, data.get('status'), data.get('received_date'))
    notify("Shipment Status Updated", f"Shipment {shipment['shipment_id']} is now {shipment['status']}")
    return jsonify({"success": True, "data": shipment})


@shipments_bp.route('/material-shipments/stats')
@login_required
def get_material_shipment_stats():
    return jsonify({"success": True, "data": material_shipment_stats()})


# Order shipments

@shipments_bp.route('/order-shipments', methods=['GET'])
@login_required
def list_order_shipments():
    orders = order_shipments.list(request_filters(ORDER_FILTERS), request_limit())
    return jsonify({"success": True, "data": orders})


@shipments_bp.route('/order-shipments', methods=['POST'])
@login_required
def create_order_shipment():
    order = order_shipments.create(json_body())
    notify("Order Created", f"Order {order['order_id']} for {order['customer_name']} was created")
    return jsonify({"success": True, "data": order}), 201


@shipments_bp.route('/order-shipments/<int:order_id>', methods=['GET'])
@login_required
def get_order_shipment(order_id):
    return jsonify({"success": True, "data": order_shipments.get(order_id)})


@shipments_bp.route('/order-shipments/<int:order_id>', methods=['PUT'])
@login_required
def update_order_shipment(order_id):
    return jsonify({"success": True, "data": order_shipments.update(order_id, json_body())})


@shipments_bp.route('/order-shipments/<int:order_id>', methods=['DELETE'])
@login_required
def delete_order_shipment(order_id):
    return jsonify({"success": True, "data": order_shipments.delete(order_id)})


@shipments_bp.route('/order-shipments/<int:order_id>/status', methods=['POST'])
@login_required
def update_order_shipment_status(order_id):
    order = order_shipments.update_status(order_id, json_body().get('status'))
    notify("Order Status Updated", f"Order {order['order_id']} is now {order['status']}")
    return jsonify({"success": True, "data": order})


@shipments_bp.route('/order-shipments/stats')
@login_required
def get_order_shipment_stats():
    return jsonify({"success": True, "data": order_shipment_stats()})
