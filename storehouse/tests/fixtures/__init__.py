"""Shared fixtures and test doubles for the storehouse test suite."""
