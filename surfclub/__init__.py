"""Surf club booking service."""
