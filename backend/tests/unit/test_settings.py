import pytest
from pydantic import ValidationError

from pflegeconnect.settings import Settings


def test_defaults(monkeypatch):
	monkeypatch.delenv("CONTACT_REREQUEST_COOLDOWN_DAYS", raising=False)
	monkeypatch.delenv("STORE_BACKEND", raising=False)
	cfg = Settings(_env_file=None)
	assert cfg.store_backend == "postgres"
	assert cfg.contact_rerequest_cooldown_days is None
	assert cfg.message_max_length == 2000


def test_environment_overrides(monkeypatch):
	monkeypatch.setenv("STORE_BACKEND", "Memory")
	monkeypatch.setenv("LOG_LEVEL", "debug")
	monkeypatch.setenv("CONTACT_REREQUEST_COOLDOWN_DAYS", "30")
	monkeypatch.delenv("POSTGRES_URL", raising=False)
	monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/pc")
	cfg = Settings(_env_file=None)
	assert cfg.store_backend == "memory"
	assert cfg.obs_log_level == "DEBUG"
	assert cfg.contact_rerequest_cooldown_days == 30
	assert cfg.postgres_url.endswith("/pc")


def test_unknown_backend_is_rejected(monkeypatch):
	monkeypatch.setenv("STORE_BACKEND", "sqlite")
	with pytest.raises(ValidationError):
		Settings(_env_file=None)


def test_environment_helpers(monkeypatch):
	monkeypatch.setenv("ENV", "dev")
	cfg = Settings(_env_file=None)
	assert cfg.is_dev()
	assert not cfg.is_prod()
