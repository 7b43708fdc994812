# Overview: Storage lifecycle (open on startup, close on shutdown) around the Flask-SQLAlchemy engine.

from __future__ import annotations

import logging

from alembic.runtime.migration import MigrationContext
from flask import Flask
from flask_migrate import upgrade
from sqlalchemy import event

from .extensions import db

logger = logging.getLogger(__name__)

EXTENSION_KEY = "oilpos_storage"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Storage:
    """
    Owns the application's database handle.

    open() prepares the engine and applies pending migrations once;
    close() releases the session and every pooled connection. The schema
    version is whatever Alembic recorded in alembic_version.
    """

    def __init__(self, app: Flask):
        self.app = app
        self.is_open = False
        app.extensions[EXTENSION_KEY] = self

    def open(self) -> "Storage":
        if self.is_open:
            return self

        with self.app.app_context():
            engine = db.engine
            if engine.dialect.name == "sqlite":
                event.listen(engine, "connect", _enable_sqlite_foreign_keys)

            if self.app.config.get("AUTO_MIGRATE"):
                upgrade()
                logger.info("Database schema at revision %s", self.current_revision())

        self.is_open = True
        return self

    def close(self) -> None:
        if not self.is_open:
            return
        with self.app.app_context():
            db.session.remove()
            db.engine.dispose()
        self.is_open = False

    def current_revision(self) -> str | None:
        with db.engine.connect() as conn:
            return MigrationContext.configure(conn).get_current_revision()


def get_storage(app: Flask) -> Storage:
    return app.extensions[EXTENSION_KEY]
