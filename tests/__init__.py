"""
Test Suite for the STBG Prioritization Backend

This package contains unit tests, integration tests, and fixtures
for the project prioritization service.

Test Categories:
- test_validation: Geometry coordinate validation and layer cleaning
- test_crs: Coordinate system registry and reprojection
- test_spatial_joins: Buffers and spatial selection
- test_project: Project defaulting and score merging
- test_criteria: The twelve criterion analyzers
- test_scoring: Normalization, totals, BCR and ranking
- test_pipeline: End-to-end analysis runs
- test_api: FastAPI endpoints
- test_resilience: Error middleware and health aggregation
- test_cache: Redis result cache
- test_events: Structured event sinks
- conftest.py: Shared fixtures and test configuration

Running Tests:
    pytest              # Run all tests
    pytest -v           # Verbose output
    pytest -m "not integration"  # Skip full pipeline runs
    pytest --cov        # With coverage report

Author: STBG Project
License: AGPL-3.0
"""
