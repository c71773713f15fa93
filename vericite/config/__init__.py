"""Configuration loading."""

from vericite.config.loader import load_settings, validate_secret_env

__all__ = ["load_settings", "validate_secret_env"]
