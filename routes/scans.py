# routes/scans.py
from flask import Blueprint, request, jsonify
from flask_login import login_required

from routes.inventory import json_body, request_filters
from services.scan_service import scan_history
from services.validation_service import sanitize_int

scans_bp = Blueprint("scans", __name__)


@scans_bp.route('/scan-history', methods=['GET'])
@login_required
def list_scans():
    limit = sanitize_int(request.args.get('limit'), min_val=1, max_val=1000, default=scan_history.default_limit)
    scans = scan_history.list(request_filters(('search', 'type', 'status')), limit)
    return jsonify({"success": True, "data": scans})


@scans_bp.route('/scan-history', methods=['POST'])
@login_required
def save_scan():
    return jsonify({"success": True, "data": scan_history.save(json_body())}), 201


@scans_bp.route('/scan-history', methods=['DELETE'])
@login_required
def clear_scans():
    return jsonify({"success": True, "deleted_count": scan_history.clear()})


@scans_bp.route('/scan-history/<int:scan_id>', methods=['DELETE'])
@login_required
def delete_scan(scan_id):
    return jsonify({"success": True, "data": scan_history.delete(scan_id)})
