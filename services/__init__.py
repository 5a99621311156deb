"""Persistence and domain services."""
