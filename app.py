# app.py
import logging

from flask import Flask, jsonify
from flask_login import LoginManager

from config import SECRET_KEY, DEBUG, IS_PRODUCTION, ENVIRONMENT, PORT, PERMANENT_SESSION_LIFETIME, TESTING
from routes.auth import auth_bp
from routes.inventory import inventory_bp
from routes.notifications import notifications_bp
from routes.scans import scans_bp
from routes.shipments import shipments_bp
from routes.system import system_bp
from services.auth_service import get_user
from services.db import ConnectionManager, set_manager
from services.errors import IntegrityViolation, NotFound, StoreUnavailable
from services.init_db import init_db
from services.logging_service import setup_logging
from services.validation_service import ValidationError

logger = logging.getLogger(__name__)


def _error_response(error, status):
    return jsonify({"success": False, "message": error.message, "field": error.field}), status


def register_error_handlers(app):
    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        return _error_response(error, 400)

    @app.errorhandler(NotFound)
    def handle_not_found(error):
        return _error_response(error, 404)

    @app.errorhandler(IntegrityViolation)
    def handle_integrity_violation(error):
        return _error_response(error, 409)

    @app.errorhandler(StoreUnavailable)
    def handle_store_unavailable(error):
        return _error_response(error, 503)


def create_app(manager: ConnectionManager = None, init_schema: bool = True):
    """
    Build the Flask app. ``manager`` replaces the process-wide connection
    manager (tests pass one without a DSN to run in fallback mode).
    """
    setup_logging()
    if manager is not None:
        set_manager(manager)
    if init_schema:
        init_db(manager)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = SECRET_KEY
    app.config['DEBUG'] = DEBUG
    app.config['TESTING'] = TESTING
    app.config['PERMANENT_SESSION_LIFETIME'] = PERMANENT_SESSION_LIFETIME

    # Security settings
    app.config['SESSION_COOKIE_SECURE'] = IS_PRODUCTION  # HTTPS only in production
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        return get_user(user_id)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"success": False, "message": "Authentication required"}), 401

    register_error_handlers(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(system_bp)
    app.register_blueprint(inventory_bp, url_prefix="/api")
    app.register_blueprint(shipments_bp, url_prefix="/api")
    app.register_blueprint(notifications_bp, url_prefix="/api")
    app.register_blueprint(scans_bp, url_prefix="/api")

    logger.info(f"🚀 Inventory service starting in {ENVIRONMENT} mode (DEBUG={DEBUG})")
    return app


if __name__ == "__main__":
    app = create_app()
    print(f"🌐 Starting inventory service on port {PORT}")
    app.run(host="0.0.0.0", port=PORT, debug=DEBUG)
