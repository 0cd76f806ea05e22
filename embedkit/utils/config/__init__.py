"""Configuration file loading."""

from .config_loader import PARAMETERS_SCHEMA, ConfigLoader, load_parameters  # noqa: F401
