import os
import sys

from alembic import context
from sqlalchemy import pool

# ------------------------------------------------------------
# Projekt-Root in sys.path eintragen, damit "shorttrack" importierbar ist
# ------------------------------------------------------------
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

# ------------------------------------------------------------
# DB-Objekte importieren
# ------------------------------------------------------------
from shorttrack.db.database import engine, Base

# Alle Models importieren, damit Alembic sie kennt
import shorttrack.models  # noqa: F401

config = context.config

# kein fileConfig(): Logging kommt aus der App, nicht aus alembic.ini
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Migrationen ohne DB-Verbindung (offline)."""
    url = str(engine.url)
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Migrationen mit echter DB-Verbindung (online)."""
    connectable = engine

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
            poolclass=pool.NullPool,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
