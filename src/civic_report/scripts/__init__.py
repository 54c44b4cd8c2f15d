"""Operational scripts for development and deployment."""
