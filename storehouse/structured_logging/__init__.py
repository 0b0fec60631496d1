"""Structured logging infrastructure for storehouse."""
