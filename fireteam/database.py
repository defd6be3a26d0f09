"""
Database connection and session management for the database record store
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from fireteam.core.config import settings

# Create database engine with connection pooling
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,      # Test connections before using
    pool_size=10,            # Connection pool size
    max_overflow=20,         # Overflow connections allowed
    echo=settings.DEBUG      # Log SQL queries in debug mode
)

# Session factory for creating database sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all models
Base = declarative_base()


def init_db(bind=None):
    """Initialize database tables"""
    # Register models on Base before create_all
    import fireteam.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
