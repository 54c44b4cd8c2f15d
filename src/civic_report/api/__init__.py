"""HTTP API for the issue lifecycle engine."""
