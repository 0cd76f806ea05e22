"""Shared utilities: logging and configuration loading."""
