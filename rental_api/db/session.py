from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from rental_api.core.config import settings

db_url = str(settings.SQLALCHEMY_DATABASE_URI)

# SQLite-specific: allow the connection to be used across threads
connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}

engine = create_engine(
    db_url,
    pool_pre_ping=True,  # Test connections for liveness when checked out from pool
    connect_args=connect_args,
)

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class for declarative class definitions
Base = declarative_base()

# Dependency to get database session
def get_db():
    """
    Dependency for FastAPI endpoints that need a database session.
    Creates a new session for each request and closes it when done.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
