"""
SEO Lead Intelligence API - Main Application.

Wires the report, lead and enrichment routers into one FastAPI app.

Environment:
- LOG_LEVEL: root log level (default INFO)
- CORS_ORIGINS: comma-separated allowed origins (default "*")
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.routers import enrichment, leads, reports

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Integrations reported by /health; each is enabled by its key being set.
INTEGRATION_ENV_VARS = {
    "supabase": "SUPABASE_URL",
    "dataforseo": "DATAFORSEO_API_KEY",
    "google_places": "GOOGLE_PLACES_API_KEY",
}


def _cors_origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()] or ["*"]


app = FastAPI(
    title="SEO Lead Intelligence API",
    description="REST API for discovering, scoring, enriching and reporting on SEO sales leads",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Browsers only expose Content-Disposition to scripts when it is listed here.
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

app.include_router(reports.router, prefix="/api/v1", tags=["Reports"])
app.include_router(leads.router, prefix="/api/v1", tags=["Leads"])
app.include_router(enrichment.router, prefix="/api/v1", tags=["Enrichment"])


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Reports the API version and which external integrations are configured.
    Unconfigured integrations are not an error: discovery falls back to demo
    leads and enrichment completes leads without provider metrics.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "seo-lead-intelligence-api",
        "integrations": {
            name: bool(os.getenv(env_var)) for name, env_var in INTEGRATION_ENV_VARS.items()
        },
    }


@app.get("/", tags=["Root"])
def root():
    """Service index."""
    return {
        "message": "SEO Lead Intelligence API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "endpoints": sorted(path for path in app.openapi()["paths"] if path.startswith("/api/v1")),
    }
