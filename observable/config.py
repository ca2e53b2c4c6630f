"""Application configuration for the observable repository."""

from __future__ import annotations

import os
from typing import Dict, List, Type

from dotenv import load_dotenv
from sqlalchemy.engine.url import make_url

load_dotenv()


def _engine_options_from_uri(uri: str) -> dict:
    url = make_url(uri)
    # Always keep pool_pre_ping, vary connect_args by dialect.
    if url.get_backend_name() == "sqlite":
        return {
            "pool_pre_ping": True,
            "connect_args": {"timeout": 30},
        }
    if url.get_backend_name() in {"postgresql", "postgres"}:
        timeout = int(os.environ.get("DB_CONNECT_TIMEOUT_SECONDS", "10"))
        return {"pool_pre_ping": True, "connect_args": {"connect_timeout": timeout}}
    return {"pool_pre_ping": True}


def _observers_from_env(value: str | None) -> List[str]:
    """Comma-separated import strings, e.g. "app.observers:Audit,app.observers:Mailer"."""
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class BaseConfig:
    """Base configuration loaded for all environments."""

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///instance/observable.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options_from_uri(SQLALCHEMY_DATABASE_URI)

    # Named observers seeded into the registry when the repository starts.
    OBSERVABLE_OBSERVERS = _observers_from_env(os.environ.get("OBSERVABLE_OBSERVERS"))
    OBSERVABLE_LOG_LEVEL = os.environ.get("OBSERVABLE_LOG_LEVEL", "INFO").upper()


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    ENV = "development"
    OBSERVABLE_LOG_LEVEL = os.environ.get("OBSERVABLE_LOG_LEVEL", "DEBUG").upper()


class TestingConfig(BaseConfig):
    TESTING = True
    # In-memory sqlite: every app gets a fresh database.
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite://")
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options_from_uri(SQLALCHEMY_DATABASE_URI)
    OBSERVABLE_OBSERVERS: List[str] = []


class ProductionConfig(BaseConfig):
    ENV = "production"


config_by_name: Dict[str, Type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    # CI pipelines set APP_ENV=ci; map to testing defaults.
    "ci": TestingConfig,
}
