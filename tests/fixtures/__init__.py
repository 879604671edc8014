"""Test fixtures shared across unit and property tests."""
