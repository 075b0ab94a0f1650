"""Core modules: configuration, logging, errors and domain models."""
