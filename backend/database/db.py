from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from backend.config.settings import Settings, get_settings
from backend.database.models import Base

# Connections kept beyond the scheduler's workers, for API requests and the tick itself
API_CONNECTIONS = 5


def engine_options(settings: Settings) -> dict:
    """Engine keyword arguments for the configured database."""
    options = {"echo": settings.debug}
    if settings.database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        # Every scheduler worker may hold a session while it writes a checkpoint
        options["pool_size"] = settings.scheduler_max_workers + API_CONNECTIONS
        options["max_overflow"] = settings.scheduler_max_workers
        options["pool_pre_ping"] = True
    return options


settings = get_settings()

engine = create_engine(settings.database_url, **engine_options(settings))

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db():
    """Create all tables."""
    Base.metadata.create_all(bind=engine)
