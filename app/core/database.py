"""
SQLAlchemy engine, session factory and schema check for the journal store
"""
import logging
from pathlib import Path
from typing import Optional

from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def build_engine(database_url: str) -> Engine:
    """SQLite shares one connection across threads; other backends ping before checkout."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(database_url, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def migration_head(project_root: Path = PROJECT_ROOT) -> str:
    """Newest revision in the project's migration scripts."""
    ini_path = project_root / "alembic.ini"
    scripts_path = project_root / "alembic"
    if not ini_path.exists() or not scripts_path.exists():
        raise RuntimeError(f"No migration scripts found under {project_root}")

    config = Config(str(ini_path))
    config.set_main_option("script_location", str(scripts_path))
    heads = ScriptDirectory.from_config(config).get_heads()
    if len(heads) != 1:
        raise RuntimeError(f"Migration history has {len(heads)} heads; merge them into one")
    return heads[0]


def stored_revision(bind: Engine) -> Optional[str]:
    """Revision recorded in the database, or None for an unmigrated database."""
    try:
        with bind.connect() as conn:
            return conn.execute(text("SELECT version_num FROM alembic_version")).scalar()
    except SQLAlchemyError:
        return None


def init_db(bind: Optional[Engine] = None, project_root: Path = PROJECT_ROOT):
    """
    Prepare the schema before serving requests.

    With DATABASE_AUTO_CREATE the tables are created from the models.
    Otherwise the database must already be migrated to the latest revision.
    """
    bind = bind or engine
    if settings.DATABASE_AUTO_CREATE:
        # Model modules register their tables on Base.metadata when imported.
        from app.models import focus_stock, journal_entry  # noqa: F401
        Base.metadata.create_all(bind=bind)
        logger.info("Created journal tables from the model definitions")
        return

    head = migration_head(project_root)
    revision = stored_revision(bind)
    if revision != head:
        raise RuntimeError(
            f"Journal database is at revision {revision or 'none'} but the code expects {head}; "
            "apply migrations with `alembic upgrade head`"
        )
    logger.info(f"Journal database schema is at revision {head}")


def get_db():
    """Request-scoped session, closed once the response is sent"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
