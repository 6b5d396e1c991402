"""Core domain: models, errors and services."""
