"""Configuration and logging for the Atelier API."""
