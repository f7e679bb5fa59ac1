# services/init_db.py
import logging

import psycopg2
from werkzeug.security import generate_password_hash

from config import DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD
from services.db import ConnectionManager, get_manager
from services.errors import StoreUnavailable

logger = logging.getLogger(__name__)

TABLES = {
    "users": """
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            username VARCHAR(50) UNIQUE NOT NULL,
            password VARCHAR(255) NOT NULL,
            role VARCHAR(20) DEFAULT 'user',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "notifications": """
        CREATE TABLE IF NOT EXISTS notifications (
            id SERIAL PRIMARY KEY,
            title VARCHAR(100) NOT NULL,
            message TEXT NOT NULL,
            type VARCHAR(20) DEFAULT 'info',
            is_read BOOLEAN DEFAULT false,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "scan_history": """
        CREATE TABLE IF NOT EXISTS scan_history (
            id SERIAL PRIMARY KEY,
            scanned_code VARCHAR(100) NOT NULL,
            scan_type VARCHAR(20) DEFAULT 'barcode',
            item_id INTEGER,
            product_name VARCHAR(255),
            quantity INTEGER DEFAULT 1,
            scan_status VARCHAR(20) DEFAULT 'scanned',
            scanned_by VARCHAR(50) DEFAULT 'unknown',
            notes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "categories": """
        CREATE TABLE IF NOT EXISTS categories (
            id SERIAL PRIMARY KEY,
            category_id VARCHAR(50) UNIQUE NOT NULL,
            category_name VARCHAR(255) NOT NULL,
            description TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "warehouses": """
        CREATE TABLE IF NOT EXISTS warehouses (
            id SERIAL PRIMARY KEY,
            warehouse_id VARCHAR(50) UNIQUE NOT NULL,
            warehouse_name VARCHAR(255) NOT NULL,
            location VARCHAR(255),
            capacity INTEGER,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "inventory_items": """
        CREATE TABLE IF NOT EXISTS inventory_items (
            id SERIAL PRIMARY KEY,
            item_code VARCHAR(50) UNIQUE NOT NULL,
            product_name VARCHAR(255) NOT NULL,
            unit_of_measure VARCHAR(10) NOT NULL,
            buy_price DECIMAL(10,2) NOT NULL CHECK (buy_price >= 0),
            sell_price DECIMAL(10,2) CHECK (sell_price >= 0),
            location VARCHAR(255) NOT NULL,
            category_id VARCHAR(50),
            status VARCHAR(20) DEFAULT 'active',
            warehouse_id VARCHAR(50),
            total_quantity INTEGER DEFAULT 0 CHECK (total_quantity >= 0),
            min_stock_level INTEGER DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "material_shipments": """
        CREATE TABLE IF NOT EXISTS material_shipments (
            id SERIAL PRIMARY KEY,
            shipment_id VARCHAR(50) UNIQUE NOT NULL,
            material_id VARCHAR(50),
            material_name VARCHAR(255) NOT NULL,
            item_code VARCHAR(50),
            quantity INTEGER NOT NULL,
            unit VARCHAR(20) NOT NULL,
            shipment_type VARCHAR(20) NOT NULL,
            source VARCHAR(255) NOT NULL,
            destination VARCHAR(255) NOT NULL,
            status VARCHAR(20) DEFAULT 'pending',
            date_shipped DATE,
            estimated_delivery DATE,
            received_date DATE,
            handled_by VARCHAR(100),
            notes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
    "order_shipments": """
        CREATE TABLE IF NOT EXISTS order_shipments (
            id SERIAL PRIMARY KEY,
            order_id VARCHAR(50) UNIQUE NOT NULL,
            customer_name VARCHAR(255) NOT NULL,
            item_code VARCHAR(50),
            product_name VARCHAR(255) NOT NULL,
            quantity INTEGER NOT NULL,
            total_value DECIMAL(12,2) DEFAULT 0,
            priority VARCHAR(20) DEFAULT 'medium',
            status VARCHAR(20) DEFAULT 'processing',
            order_date DATE DEFAULT CURRENT_DATE,
            ship_date DATE,
            delivery_date DATE,
            tracking_number VARCHAR(100),
            notes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """,
}

DEFAULT_CATEGORIES = [
    ('CAT001', 'Electronics'),
    ('CAT002', 'Accessories'),
    ('CAT003', 'Components'),
]

DEFAULT_WAREHOUSES = [
    ('WH001', 'Main Warehouse'),
    ('WH002', 'Secondary Warehouse'),
]

WELCOME_NOTIFICATIONS = [
    ('Welcome to Inventory System', 'Your inventory management system is ready to use!', 'info'),
    ('Database Connected', 'Successfully connected to the database.', 'success'),
]


def create_tables(c):
    for name, ddl in TABLES.items():
        c.execute(ddl)
        logger.info(f"  ✅ Table created/verified: {name}")


def insert_default_data(c):
    """Seed rows; every insert is a no-op when the row already exists."""
    for category_id, category_name in DEFAULT_CATEGORIES:
        c.execute("""
            INSERT INTO categories (category_id, category_name) VALUES (%s, %s)
            ON CONFLICT (category_id) DO NOTHING
        """, (category_id, category_name))

    for warehouse_id, warehouse_name in DEFAULT_WAREHOUSES:
        c.execute("""
            INSERT INTO warehouses (warehouse_id, warehouse_name) VALUES (%s, %s)
            ON CONFLICT (warehouse_id) DO NOTHING
        """, (warehouse_id, warehouse_name))

    c.execute("SELECT 1 FROM users WHERE username = %s", (DEFAULT_ADMIN_USERNAME,))
    if c.fetchone() is None:
        c.execute("""
            INSERT INTO users (username, password, role) VALUES (%s, %s, 'admin')
            ON CONFLICT (username) DO NOTHING
        """, (DEFAULT_ADMIN_USERNAME, generate_password_hash(DEFAULT_ADMIN_PASSWORD)))
        logger.info("  ✅ Admin user created")

    c.execute("SELECT 1 FROM notifications LIMIT 1")
    if c.fetchone() is None:
        c.executemany(
            "INSERT INTO notifications (title, message, type) VALUES (%s, %s, %s)",
            WELCOME_NOTIFICATIONS,
        )
        logger.info("  ✅ Sample notifications created")


def ensure_schema(manager: ConnectionManager = None) -> bool:
    """Create tables and seed rows if missing.

    Safe to run on every start. Returns False without doing anything when
    the database is unavailable.
    """
    manager = manager or get_manager()
    if not manager.is_available():
        logger.warning("⚠️ Database not available, skipping table creation")
        return False
    logger.info("🚀 Starting database initialization...")
    try:
        with manager.transaction() as conn:
            c = conn.cursor()
            create_tables(c)
            insert_default_data(c)
    except (psycopg2.Error, StoreUnavailable) as e:
        logger.error(f"❌ Database initialization failed: {e}")
        raise
    logger.info("🎉 Database initialization completed successfully!")
    return True


def init_db(manager: ConnectionManager = None) -> bool:
    """Startup hook: like ensure_schema(), but a failure leaves the app running."""
    try:
        return ensure_schema(manager)
    except (psycopg2.Error, StoreUnavailable):
        return False
