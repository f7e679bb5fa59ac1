# services/auth_service.py
import logging

import psycopg2
from psycopg2 import errorcodes
from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from config import DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD
from services.db import ConnectionManager, get_manager
from services.errors import IntegrityViolation, StoreUnavailable
from services.validation_service import ValidationError

logger = logging.getLogger(__name__)

# Session identity used while the database is unreachable
FALLBACK_ADMIN_ID = "0"


class User(UserMixin):
    def __init__(self, id, username, role, password_hash=None):
        self.id = str(id)  # Flask-Login requires id to be a string
        self.username = username
        self.role = role
        self.password_hash = password_hash

    def verify_password(self, password_plain):
        """
        Compare a plain password to the stored hash.
        """
        return check_password_hash(self.password_hash, password_plain) if self.password_hash else False

    def to_dict(self):
        return {"id": self.id, "username": self.username, "role": self.role}


def _fallback_admin():
    return User(FALLBACK_ADMIN_ID, DEFAULT_ADMIN_USERNAME, "admin")


def _load_user(column, value, manager):
    with manager.connection() as conn:
        c = conn.cursor()
        c.execute(f"SELECT id, username, role, password FROM users WHERE {column} = %s", (value,))
        row = c.fetchone()
    if row is None:
        return None
    return User(row[0], row[1], row[2], row[3])


def get_user(user_id, manager: ConnectionManager = None):
    """Flask-Login user loader."""
    manager = manager or get_manager()
    if not manager.is_available():
        return _fallback_admin() if str(user_id) == FALLBACK_ADMIN_ID else None
    try:
        return _load_user("id", int(user_id), manager)
    except ValueError:
        return None


def authenticate(username, password, manager: ConnectionManager = None):
    """
    Return the User for valid credentials, else None.

    Without a database only the configured default admin credentials are
    accepted, so the app stays usable in fallback mode.
    """
    manager = manager or get_manager()
    if not username or not password:
        return None
    if not manager.is_available():
        if username == DEFAULT_ADMIN_USERNAME and password == DEFAULT_ADMIN_PASSWORD:
            logger.warning("Database not available, using fallback admin login")
            return _fallback_admin()
        return None
    user = _load_user("username", username, manager)
    if user and user.verify_password(password):
        return user
    return None


def create_user(username, password, role="user", manager: ConnectionManager = None):
    if not username:
        raise ValidationError("username is required", field="username")
    if not password:
        raise ValidationError("password is required", field="password")
    manager = manager or get_manager()
    if not manager.is_available():
        raise StoreUnavailable()
    try:
        with manager.transaction() as conn:
            c = conn.cursor()
            c.execute(
                "INSERT INTO users (username, password, role) VALUES (%s, %s, %s) RETURNING id",
                (username, generate_password_hash(password), role),
            )
            user_id = c.fetchone()[0]
    except psycopg2.IntegrityError as e:
        if e.pgcode == errorcodes.UNIQUE_VIOLATION:
            raise IntegrityViolation("A user with this username already exists", field="username") from e
        raise
    return User(user_id, username, role)
