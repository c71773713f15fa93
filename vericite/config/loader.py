"""YAML and env loader with fail-fast validation."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

from vericite.models import SettingsConfig

DEFAULT_SETTINGS_PATH = "config/settings.yaml"

REQUIRED_ENV_KEYS: tuple[str, ...] = ("GEMINI_API_KEY",)


def _read_yaml(path: str) -> dict:
    resolved = Path(path)
    if not resolved.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with resolved.open("r", encoding="utf-8") as file_obj:
        loaded = yaml.safe_load(file_obj) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Expected object at root of YAML file: {path}")
    return loaded


def load_settings(settings_path: str = DEFAULT_SETTINGS_PATH) -> SettingsConfig:
    load_dotenv()
    settings = SettingsConfig.model_validate(_read_yaml(settings_path))
    # CROSSREF_EMAIL in the environment wins over an empty YAML value.
    if not settings.http.crossref_email and os.getenv("CROSSREF_EMAIL"):
        settings.http.crossref_email = os.environ["CROSSREF_EMAIL"]
    return settings


def validate_secret_env() -> list[str]:
    """Return list of missing required env var names."""
    load_dotenv()
    return [key for key in REQUIRED_ENV_KEYS if not os.getenv(key)]
