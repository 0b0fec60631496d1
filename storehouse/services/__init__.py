"""Aggregation and allocation services."""
