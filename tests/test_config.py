import importlib

import pytest

from app import create_app
from config import TestingConfig, resolve_claim_distance


@pytest.mark.parametrize("mode,expected", [("production", 10.0), ("development", 10000.0)])
def test_claim_distance_follows_deployment_mode(mode, expected):
    assert resolve_claim_distance(mode) == expected


def test_explicit_override_wins():
    assert resolve_claim_distance("production", "25") == 25.0
    assert resolve_claim_distance("production", "") == 10.0


def test_unknown_mode_is_refused():
    with pytest.raises(ValueError):
        resolve_claim_distance("staging")


def test_app_refuses_to_start_without_qr_secret(monkeypatch):
    monkeypatch.setattr(TestingConfig, "QR_CODE_SECRET", None)
    with pytest.raises(RuntimeError, match="QR_CODE_SECRET"):
        create_app("testing")


@pytest.fixture
def reloaded_config(monkeypatch):
    """Re-evaluates config.py against the environment the test sets up."""
    import app as app_module
    import config

    def reload():
        importlib.reload(config)
        monkeypatch.setattr(app_module, "CONFIGS", config.CONFIGS)
        return config

    yield reload
    monkeypatch.undo()
    importlib.reload(config)


@pytest.fixture
def deployment_env(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "env-jwt-secret")
    monkeypatch.setenv("QR_CODE_SECRET", "env-qr-secret")
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.delenv("MAX_CLAIM_DISTANCE_METERS", raising=False)
    return monkeypatch


def test_deployment_mode_wins_over_development_config(deployment_env, reloaded_config):
    deployment_env.setenv("DEPLOYMENT_MODE", "production")
    deployment_env.setenv("APP_CONFIG", "development")
    reloaded_config()
    app = create_app()
    assert app.config["DEBUG"] is True
    assert app.config["DEPLOYMENT_MODE"] == "production"
    assert app.config["MAX_CLAIM_DISTANCE_METERS"] == 10.0


def test_development_config_defaults_to_development_mode(deployment_env, reloaded_config):
    deployment_env.delenv("DEPLOYMENT_MODE", raising=False)
    reloaded_config()
    app = create_app("development")
    assert app.config["DEPLOYMENT_MODE"] == "development"
    assert app.config["MAX_CLAIM_DISTANCE_METERS"] == 10000.0
