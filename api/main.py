"""
RainCheck Sponsorship API - Main Application.

FastAPI application with CORS enabled for the weather app frontend and the
admin dashboard.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(
    title="RainCheck Sponsorship API",
    description="Sponsored weather messages, feedback and usage capture, and the admin review surface",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
def health_check():
    """Returns the API status and version."""
    return {
        "status": "healthy",
        "version": __version__,
        "service": "raincheck-sponsorship-api"
    }


@app.get("/", tags=["Root"])
def root():
    return {
        "message": "RainCheck Sponsorship API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


from api.routers import activity, admin, sponsorships

app.include_router(sponsorships.router, prefix="/api/v1", tags=["Sponsorships"])
app.include_router(activity.router, prefix="/api/v1", tags=["Activity"])
app.include_router(admin.router, prefix="/api/v1", tags=["Admin"])
