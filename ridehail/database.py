# ridehail/database.py - Database Configuration
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from ridehail.config import settings


def _create_engine(url: str):
    if str(url).startswith("sqlite"):
        return create_engine(url, echo=settings.DEBUG, connect_args={"check_same_thread": False})
    return create_engine(url, echo=settings.DEBUG, pool_pre_ping=True)


engine = _create_engine(settings.DATABASE_URL)

# Session maker
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()

# Dependency to get database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
