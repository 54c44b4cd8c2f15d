"""Configuration and authentication primitives."""
