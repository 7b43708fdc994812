# Overview: Flask extension instances for database and migrations.

from pathlib import Path

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

MIGRATIONS_DIR = str(Path(__file__).resolve().parent.parent / "migrations")

db = SQLAlchemy()
migrate = Migrate(directory=MIGRATIONS_DIR)
