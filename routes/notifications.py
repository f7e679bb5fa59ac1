# routes/notifications.py
from flask import Blueprint, request, jsonify
from flask_login import login_required

from routes.inventory import request_filters
from services.notification_service import notifications
from services.validation_service import sanitize_int

notifications_bp = Blueprint("notifications", __name__)


@notifications_bp.route('/notifications')
@login_required
def list_notifications():
    limit = sanitize_int(request.args.get('limit'), min_val=1, max_val=100, default=notifications.default_limit)
    records = notifications.list(request_filters(('search', 'type')), limit)
    return jsonify({"success": True, "data": records})


@notifications_bp.route('/notifications/count')
@login_required
def unread_count():
    return jsonify({"success": True, "count": notifications.unread_count()})


@notifications_bp.route('/notifications/<int:notification_id>/read', methods=['POST'])
@login_required
def mark_read(notification_id):
    if not notifications.mark_read(notification_id):
        return jsonify({"success": False, "message": "Notification not found", "field": "id"}), 404
    return jsonify({"success": True})


@notifications_bp.route('/notifications/read-all', methods=['POST'])
@login_required
def mark_all_read():
    return jsonify({"success": True, "updated": notifications.mark_all_read()})
