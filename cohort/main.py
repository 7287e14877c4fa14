"""Main FastAPI application for Cohort API."""

from fastapi import FastAPI

from cohort.api.errors import register_error_handlers
from cohort.api.v1 import groups
from cohort.config import settings
from cohort.core.logging_config import configure_logging

configure_logging()

# Create FastAPI application instance
app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
)

register_error_handlers(app)

# Include API routers
app.include_router(
    groups.router,
    prefix=f"{settings.API_V1_PREFIX}/groups",
    tags=["Groups"]
)


@app.get("/")
def root():
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to Cohort API",
        "docs": "/docs",
        "version": "1.0.0"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
