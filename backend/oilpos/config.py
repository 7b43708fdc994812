# backend/oilpos/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/oil_inventory.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///oil_inventory.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Apply pending Alembic revisions when the storage is opened
    AUTO_MIGRATE = _env_flag("AUTO_MIGRATE", True)

    # Products below this quantity count as low stock on the dashboard
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))

    DEFAULT_PAYMENT_MODE = os.environ.get("DEFAULT_PAYMENT_MODE", "Cash")

    # Seller snapshot used when a bill has no employee (owner sale)
    OWNER_SELLER_NAME = os.environ.get("OWNER_SELLER_NAME", "Owner")

    CUSTOMER_SEARCH_LIMIT = 5
