"""Civic Report: issue lifecycle and moderation engine."""

__version__ = "0.1.0"
