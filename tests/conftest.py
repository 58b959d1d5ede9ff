"""
Pytest configuration file.

This file is automatically loaded by pytest before any tests run.
It sets up the test environment configuration and shared fixtures.
"""
import os
import sys
from pathlib import Path

import pytest

# Set APP_ENV to test before any other imports
os.environ['APP_ENV'] = 'test'

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from geo_explorer.models import Coordinate  # noqa: E402


@pytest.fixture
def paris():
    return Coordinate(latitude=48.8566, longitude=2.3522)


@pytest.fixture
def berlin():
    return Coordinate(latitude=52.52, longitude=13.405)


@pytest.fixture
def square_area():
    """A small square around central Bangalore."""
    return [
        Coordinate(latitude=12.95, longitude=77.55),
        Coordinate(latitude=12.95, longitude=77.65),
        Coordinate(latitude=13.05, longitude=77.65),
        Coordinate(latitude=13.05, longitude=77.55),
    ]


@pytest.fixture
def recorded_steps():
    """Progress callback that records every update it receives."""
    updates = []

    def report(update):
        updates.append(update)

    report.updates = updates
    return report
