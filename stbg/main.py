"""
@file main.py
@brief FastAPI application factory and root endpoint.
@details
Initializes the STBG prioritization FastAPI application with:
- Logging configuration
- Middleware setup (CORS, Error handling)
- Router registration (API, Health)
- Documentation serving

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from starlette.exceptions import HTTPException

# Internal modules
from stbg import __version__
from stbg.api import routes
from stbg.api.endpoints import health
from stbg.core import docs
from stbg.core import exceptions
from stbg.core.cache import cache
from stbg.core.logging import setup_logging
from stbg.core.middleware import ErrorHandlingMiddleware
from stbg.services.criteria import CRITERIA
from stbg.spatial.crs import REGISTRY

# Configure logging
logger = setup_logging()

## @brief Front-end origins allowed by default
DEFAULT_ORIGINS = (
    "http://localhost:5173,http://localhost:5174,"
    "https://stbg-projects-highway.netlify.app,https://stbg.onrender.com"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    @brief Application lifecycle manager
    @details
    Handles startup and shutdown events:
    - Registry summary
    - Redis connection
    """
    # Startup
    logger.info("=" * 60)
    logger.info("Starting STBG Prioritization API...")
    logger.info("=" * 60)
    logger.info(f"Loaded {len(CRITERIA)} criteria and {len(REGISTRY)} coordinate systems")

    await cache.connect()

    yield

    # Shutdown
    await cache.close()
    logger.info("STBG Prioritization API shutdown completed")


## @brief FastAPI application instance
app = FastAPI(
    title="STBG Project Prioritization API",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url=None
)

# --------------------------------------------------------------------------
# Middleware
# --------------------------------------------------------------------------

allowed_origins = [
    origin.strip()
    for origin in os.getenv("STBG_ALLOWED_ORIGINS", DEFAULT_ORIGINS).split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(ErrorHandlingMiddleware)


# --------------------------------------------------------------------------
# Routers
# --------------------------------------------------------------------------

app.include_router(health.router)
app.include_router(routes.router)


# --------------------------------------------------------------------------
# Exception Handlers
# --------------------------------------------------------------------------

app.add_exception_handler(HTTPException, exceptions.http_exception_handler)
app.add_exception_handler(RequestValidationError, exceptions.validation_exception_handler)
app.add_exception_handler(exceptions.AnalysisInputError, exceptions.analysis_input_exception_handler)
app.add_exception_handler(Exception, exceptions.general_exception_handler)


@app.get("/", response_class=HTMLResponse)
def read_root():
    """
    @brief Serve root documentation page
    """
    return docs.get_root_documentation()
