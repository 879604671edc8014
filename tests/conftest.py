# tests/conftest.py
"""Shared test fixtures and helpers.

Field-group types live in tests.fixtures.groups (a small inventory game).

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from keepsake.engine import Engine
from keepsake.world import TypeRegistry, World
from tests.fixtures.groups import ALL_TYPES, build_registry

# =============================================================================
# World fixtures
# =============================================================================


@pytest.fixture
def registry() -> TypeRegistry:
    """Type registry holding every test field-group type."""
    return build_registry()


@pytest.fixture
def world(registry: TypeRegistry) -> World:
    return World(registry)


@pytest.fixture
def target_world(registry: TypeRegistry) -> World:
    """Empty world sharing the registry, for decoding into."""
    return World(registry)


@pytest.fixture
def engine() -> Engine:
    engine = Engine()
    for group_type in ALL_TYPES:
        engine.register_type(group_type)
    return engine


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Keep structlog and root-logger configuration from leaking between tests."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    root.handlers = handlers
    root.setLevel(level)


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
