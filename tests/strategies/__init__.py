# tests/strategies/__init__.py
"""Hypothesis strategies for property-based tests.

Re-exports commonly used strategies for convenience:
    from tests.strategies import field_maps, STANDARD_SETTINGS
"""

from tests.strategies.json import aware_datetimes, big_integers, field_maps, field_values, json_primitives
from tests.strategies.settings import DETERMINISM_SETTINGS, SLOW_SETTINGS, STANDARD_SETTINGS

__all__ = [
    "DETERMINISM_SETTINGS",
    "SLOW_SETTINGS",
    "STANDARD_SETTINGS",
    "aware_datetimes",
    "big_integers",
    "field_maps",
    "field_values",
    "json_primitives",
]
