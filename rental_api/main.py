import logging
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from rental_api.api.api import api_router
from rental_api.core.config import settings
from rental_api.core.errors import register_exception_handlers
from rental_api.core.middleware import add_middleware
from rental_api.core.security import purge_expired_tokens
from rental_api.db.session import SessionLocal
from rental_api.services.auth_service import purge_expired_invitations

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Vehicle rental API: bookings, payments, fleet status and customer support",
    version="0.1.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
)

register_exception_handlers(app)
add_middleware(app)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
async def root():
    """Root endpoint with basic service information."""
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": "0.1.0",
        "docs_url": "/docs",
    }

@app.on_event("startup")
def startup_event():
    """Run on application startup."""
    logger.info("Starting rental API...")
    # Tables are created by setup_db.py, not here
    db = SessionLocal()
    try:
        purge_expired_tokens(db)
        purge_expired_invitations(db)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Startup cleanup failed: {e}")
    finally:
        db.close()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("rental_api.main:app", host="0.0.0.0", port=8000, reload=True)
