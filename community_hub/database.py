from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from community_hub.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
    echo=settings.DB_ECHO
)

# Session factory
SessionLocal = sessionmaker(autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()

# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind) -> None:
    """Create all tables on the given engine/connection"""
    # Import models so they register on Base.metadata
    from community_hub import models  # noqa: F401
    Base.metadata.create_all(bind=bind)
