"""Shared models, configuration, errors and output formatting."""
