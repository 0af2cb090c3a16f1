# db/init.py
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from dotenv import load_dotenv
import logging
import os

load_dotenv()

logger = logging.getLogger(__name__)

# ---- Database engine & Session ----
DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set in environment (.env)")

# Fixed number of connections, no overflow; requests beyond the pool wait for a checkout.
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "3600"))

engine_options = {}
if not DATABASE_URL.startswith("sqlite"):
    engine_options.update(
        pool_size=DB_POOL_SIZE,
        max_overflow=0,
        pool_timeout=DB_POOL_TIMEOUT,
        pool_pre_ping=True,
    )

engine = create_engine(DATABASE_URL, **engine_options)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ---- Base for ORM models ----
Base = declarative_base()


# ---- DB session dependency ----
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_connection():
    """Fail fast when the store is unreachable; the app must not start serving."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {str(e)}")
        raise RuntimeError("Database connection failed") from e
    logger.info("Database connected successfully")


# ---- Initialization & optional seeding ----
def init_db(seed: bool = True):
    """
    Checks connectivity, imports all model modules to register tables,
    creates them, and (optionally) seeds the default admin if missing.
    """
    check_connection()

    # Import models so their metadata is registered on Base
    from models import (  # noqa: F401
        user,
        field,
        inquiry,
        app_setting,
    )

    # Create tables
    Base.metadata.create_all(bind=engine)

    if seed:
        _seed_default_admin()


def _seed_default_admin():
    """
    Insert one admin if its email does not already exist.
    Uses utils.security.hash_password.
    """
    from sqlalchemy.orm import Session
    from models.user import User
    from utils.security import hash_password

    email = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@inquirymaster.app")
    password = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin123")

    db: Session = SessionLocal()
    try:
        if not db.query(User).filter(User.email == email).first():
            db.add(
                User(
                    name="Administrator",
                    email=email,
                    password_hash=hash_password(password),
                    role="admin",
                )
            )
            db.commit()
            logger.info(f"Seeded default admin {email}")
    finally:
        db.close()
