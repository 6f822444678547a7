"""Core of vault-helper: configuration, domain models, errors and services."""

__version__ = "1.1.0"
