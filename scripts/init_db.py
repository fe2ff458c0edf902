from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from bgllotto.db.engine import database_url, make_engine


def upgrade_db(target_revision: str = "head") -> None:
    """Apply the lottery schema migrations up to ``target_revision``."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url().replace("%", "%%"))
    command.upgrade(alembic_cfg, target_revision)


def print_tables() -> None:
    """Print the tables present in the configured database."""
    engine = make_engine()
    insp = inspect(engine)
    print("Current tables:", ", ".join(sorted(insp.get_table_names())))
    engine.dispose()


def main() -> None:
    upgrade_db()
    print_tables()


if __name__ == "__main__":
    main()
