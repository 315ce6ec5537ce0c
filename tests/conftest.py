"""
Test Configuration and Shared Fixtures

This module provides shared pytest fixtures and configuration for the test suite.
Geometries are built around a fixed origin in Richmond, VA with offsets in
meters, so tests can place features at known distances from a project.

Fixtures:
- geo: GeoBuilder for points, lines and squares at metric offsets
- events: RecordingEventSink collecting pipeline events
- datasets: complete set of small input layers for a full analysis run

Author: STBG Project
License: AGPL-3.0
"""

import logging
import math

import pytest

from stbg.core.events import RecordingEventSink
from stbg.models.feature import Feature, FeatureCollection

# Configure logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

MILE = 1609.344
FOOT = 0.3048


# Mark test categories for selective running
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Full pipeline tests")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "spatial: Geometry, CRS and spatial join tests")
    config.addinivalue_line("markers", "criteria: Criterion analyzer tests")
    config.addinivalue_line("markers", "scoring: Normalization and ranking tests")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location."""
    for item in items:
        path = str(item.fspath)
        if "test_api" in path:
            item.add_marker(pytest.mark.api)
        elif "test_spatial" in path or "test_crs" in path or "test_validation" in path:
            item.add_marker(pytest.mark.spatial)
        elif "test_criteria" in path:
            item.add_marker(pytest.mark.criteria)
        elif "test_scoring" in path:
            item.add_marker(pytest.mark.scoring)
        elif "test_pipeline" in path:
            item.add_marker(pytest.mark.integration)

        if "integration" not in item.keywords:
            item.add_marker(pytest.mark.unit)


class GeoBuilder:
    """Builds GeoJSON features at metric offsets from an origin."""

    def __init__(self, lon: float = -77.43, lat: float = 37.54):
        self.lon = lon
        self.lat = lat
        self.m_per_deg_lat = 110996.0
        self.m_per_deg_lon = 111320.0 * math.cos(math.radians(lat))

    def position(self, east: float = 0.0, north: float = 0.0):
        return [self.lon + east / self.m_per_deg_lon, self.lat + north / self.m_per_deg_lat]

    def point(self, east: float = 0.0, north: float = 0.0, **props) -> Feature:
        return Feature(geometry={"type": "Point", "coordinates": self.position(east, north)}, properties=props)

    def line(self, *offsets, **props) -> Feature:
        coordinates = [self.position(east, north) for east, north in offsets]
        return Feature(geometry={"type": "LineString", "coordinates": coordinates}, properties=props)

    def square(self, east: float, north: float, half: float, **props) -> Feature:
        ring = [
            self.position(east - half, north - half),
            self.position(east + half, north - half),
            self.position(east + half, north + half),
            self.position(east - half, north + half),
            self.position(east - half, north - half),
        ]
        return Feature(geometry={"type": "Polygon", "coordinates": [ring]}, properties=props)

    @staticmethod
    def collection(*features) -> FeatureCollection:
        return FeatureCollection.of(features)


@pytest.fixture
def geo():
    return GeoBuilder()


@pytest.fixture
def events():
    return RecordingEventSink()


@pytest.fixture
def datasets(geo):
    """
    Three projects along an east-west axis, 20 miles apart.

    - Project 1 (highway, $2M): two crashes, one congested segment, TAZ growth
    - Project 2 (intersection, $4M): one crash, free-flowing segment
    - Project 3 (no data nearby, $1M)
    """
    far = 20 * MILE
    projects = geo.collection(
        geo.line((0, 0), (1000, 0), project_id=1, type="highway", county="Henrico",
                 cost_mil=2, tier="CE", fc="MA", cmf=0.3, AADT=20000, length=0.6),
        geo.point(far, 0, project_id=2, type="intersection", county="Chesterfield",
                  cost_mil=4, tier="EA", fc="MC", cmf=0.2, AADT=15000),
        geo.point(2 * far, 0, project_id=3, type="highway", county="Hanover", cost_mil=1, tier="EIS"),
    )
    crashes = geo.collection(
        geo.point(500, 20, K_PEOPLE=0, A_PEOPLE=1, B_PEOPLE=2, C_PEOPLE=0),
        geo.point(900, -30, K_PEOPLE=0, A_PEOPLE=0, B_PEOPLE=0, C_PEOPLE=3),
        geo.point(far + 10, 10, K_PEOPLE=1, A_PEOPLE=0, B_PEOPLE=0, C_PEOPLE=0),
    )
    aadt = geo.collection(
        geo.line((0, 100), (1500, 100), aadt_0=30000, los_0="E"),
        geo.line((far - 200, 50), (far + 800, 50), AADT=12000, los_0="B"),
    )
    popemp = geo.collection(
        geo.square(2000, 2000, 500, emp17=1000, emp50=1500),
        geo.square(far, 3000, 500, emp17=800, emp50=880),
    )
    empty = FeatureCollection.empty()
    return {
        "projects": projects,
        "crashes": crashes,
        "aadt": aadt,
        "popemp": popemp,
        "t6": empty,
        "nw": empty,
        "fhz": empty,
        "frsk": empty,
        "wet": empty,
        "con": empty,
        "lehd": geo.collection(geo.point(3000, 0), geo.point(5000, 0), geo.point(far + 1000, 0)),
        "actv": geo.collection(geo.point(1000, 1000)),
    }
