"""
@file __init__.py
@brief STBG prioritization backend package initialization

@details
Package defining the FastAPI application and the analysis pipeline that
ranks candidate highway projects by a composite benefit-cost score.

**Package Structure:**
- api/: FastAPI route handlers and endpoint definitions
- models/: Feature, project and result data models
- spatial/: Geometry validation, coordinate systems and spatial joins
- services/: Criterion analyzers, scoring and the prioritization pipeline
- etl/: Parsing of uploaded GeoJSON datasets
- core/: Logging, events, errors, caching and health checks

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0

@see main for FastAPI application setup
@see services.prioritization for the analysis pipeline
"""

__version__ = "1.0.0"
