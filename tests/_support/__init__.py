"""Test helpers shared across the nestree suite."""
