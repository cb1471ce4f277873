"""
pytest configuration and fixtures for the format 0x2A decoder tests.

Provides:
- Import path for the modules under tools/
- Hypothesis property-based testing profiles
- Shared test vectors and decoder fixtures
"""

import os
import sys
from pathlib import Path

import pytest
import yaml
from hypothesis import settings, Verbosity, Phase

# Add project paths
sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

VECTORS_PATH = Path(__file__).parent / "vectors" / "format_0x2a.yaml"


# Default profile: balanced speed and coverage
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
)

# CI profile: more thorough testing
settings.register_profile(
    "ci",
    max_examples=500,
    deadline=None,
    suppress_health_check=[],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)

# Dev profile: fast iteration
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
)

# Debug profile: verbose output
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))


def load_vectors():
    with open(VECTORS_PATH) as f:
        return yaml.safe_load(f)


@pytest.fixture(scope="session")
def vector_doc():
    """Parsed tests/vectors/format_0x2a.yaml."""
    return load_vectors()


@pytest.fixture
def decoder():
    from frame_decoder import FrameDecoder
    return FrameDecoder()


# Markers for test categorization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
