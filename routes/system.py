# routes/system.py
from flask import Blueprint, jsonify

from services.db import get_manager

system_bp = Blueprint('system', __name__)


@system_bp.route("/api/db-status")
def db_status():
    """Connection state for the header indicator; no login needed."""
    manager = get_manager()
    if not manager.probe():
        return jsonify({
            "success": True,
            "connected": False,
            "message": "Database not available, running in fallback mode",
        })
    info = manager.database_info() or {}
    return jsonify({
        "success": True,
        "connected": True,
        "database": info.get("database"),
        "version": info.get("version"),
    })
