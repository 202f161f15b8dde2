import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rental_api.core.config import settings
from rental_api.core.security import hash_password
from rental_api.db.session import Base, SessionLocal, engine
from rental_api.models import User
from rental_api.models.enums import UserRole

logger = logging.getLogger(__name__)

def create_first_admin(db: Session) -> None:
    """Create the bootstrap admin from FIRST_ADMIN_EMAIL/FIRST_ADMIN_PASSWORD if missing."""
    if not settings.FIRST_ADMIN_EMAIL or not settings.FIRST_ADMIN_PASSWORD:
        logger.info("FIRST_ADMIN_EMAIL not set, skipping admin bootstrap")
        return

    email = settings.FIRST_ADMIN_EMAIL.strip().lower()
    if db.query(User).filter(User.email == email).first() is not None:
        logger.info(f"Admin user {email} already exists")
        return

    db.add(
        User(
            firstname="Admin",
            lastname="User",
            email=email,
            password=hash_password(settings.FIRST_ADMIN_PASSWORD),
            role=UserRole.ADMIN,
        )
    )
    db.commit()
    logger.info(f"Admin user {email} created")

def init_db():
    """
    Initialize the database by creating every table that does not exist yet,
    then bootstrap the first admin account.
    """
    try:
        Base.metadata.create_all(bind=engine)
        for table in Base.metadata.sorted_tables:
            logger.info(f"Table {table.name} ready")

        db = SessionLocal()
        try:
            create_first_admin(db)
        finally:
            db.close()

        logger.info("Rental API tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Error creating database tables: {e}")
        raise
