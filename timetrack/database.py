from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from timetrack.config import get_settings
import logging

logger = logging.getLogger(__name__)
settings = get_settings()


def build_engine(database_url: str, **kwargs):
    """Create an engine; SQLite connections are shared across request threads."""
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(database_url, **kwargs)


engine = build_engine(settings.database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create all tables and seed the bootstrap administrator."""
    # Table classes must be registered on Base before create_all
    from timetrack.models import employee, timesheet  # noqa: F401
    from timetrack.services.employee_service import EmployeeService

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database tables ready on {bind.url.render_as_string(hide_password=True)}")

    db = sessionmaker(autoflush=False, bind=bind)()
    try:
        EmployeeService.ensure_admin_exists(db)
    finally:
        db.close()
