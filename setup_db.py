"""
Setup script for initializing the rental API database.
Creates any missing tables and the first admin account.
"""

import logging
from rental_api.db.init_db import init_db

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def setup_database():
    """Initialize database tables for the rental API."""
    logger.info("Creating rental API database tables...")
    try:
        init_db()
        logger.info("Database tables created successfully!")
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")
        raise

if __name__ == "__main__":
    setup_database()
