"""
Lead Metrics Dashboard API - Main Application.

FastAPI application with CORS enabled for frontend communication.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.errors import dashboard_error_handler
from config import cors_origins_from_env, log_level_from_env
from domain.errors import DashboardError

logging.basicConfig(
    level=log_level_from_env(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="Lead Metrics Dashboard API",
    description="REST API for lead conversion metrics, reports and conversation history",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS from CORS_ALLOW_ORIGINS (comma separated, "*" by default)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(cors_origins_from_env()),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(DashboardError, dashboard_error_handler)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "lead-metrics-dashboard-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Lead Metrics Dashboard API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import (  # noqa: E402
    account,
    admin,
    agent_settings,
    conversations,
    integration,
    metrics,
    preferences,
    reports,
)

app.include_router(metrics.router, prefix="/api/v1", tags=["Metrics"])
app.include_router(reports.router, prefix="/api/v1", tags=["Reports"])
app.include_router(conversations.router, prefix="/api/v1", tags=["Conversations"])
app.include_router(integration.router, prefix="/api/v1", tags=["Integration"])
app.include_router(preferences.router, prefix="/api/v1", tags=["Preferences"])
app.include_router(agent_settings.router, prefix="/api/v1", tags=["Agent Settings"])
app.include_router(account.router, prefix="/api/v1", tags=["Account"])
app.include_router(admin.router, prefix="/api/v1", tags=["Admin"])
