"""Tests for the infrastructure.db module."""

import pytest

from src.infrastructure import db as db_module


def test_get_env_var_reads_environment(monkeypatch):
    """_get_env_var should load .env and return the requested value."""
    monkeypatch.setattr(db_module.dotenv, "load_dotenv", lambda: None)
    monkeypatch.setenv("MIRROR_DB_URL", "postgresql://mirror")

    assert db_module._get_env_var("MIRROR_DB_URL") == "postgresql://mirror"


def test_get_env_var_raises_when_missing(monkeypatch):
    """Missing env vars should raise a RuntimeError."""
    monkeypatch.setattr(db_module.dotenv, "load_dotenv", lambda: None)
    monkeypatch.delenv("MIRROR_DB_URL", raising=False)

    with pytest.raises(RuntimeError, match="MIRROR_DB_URL"):
        db_module._get_env_var("MIRROR_DB_URL")


def test_create_engine_passes_pool_configuration(monkeypatch):
    """Server databases should use a QueuePool with health checks."""
    captured = {}

    def fake_create_engine(db_url, **kwargs):
        captured["db_url"] = db_url
        captured["kwargs"] = kwargs
        return "engine"

    monkeypatch.setattr(db_module, "create_engine", fake_create_engine)

    engine = db_module._create_engine("postgresql://mirror")

    assert engine == "engine"
    assert captured["db_url"] == "postgresql://mirror"
    assert captured["kwargs"]["poolclass"] is db_module.QueuePool
    assert captured["kwargs"]["pool_size"] == 5
    assert captured["kwargs"]["max_overflow"] == 5
    assert captured["kwargs"]["pool_pre_ping"] is True
    assert captured["kwargs"]["future"] is True


def test_create_engine_shares_in_memory_sqlite_connection(monkeypatch):
    """In-memory SQLite should use one shared connection across threads."""
    captured = {}

    def fake_create_engine(db_url, **kwargs):
        captured["kwargs"] = kwargs
        return "engine"

    monkeypatch.setattr(db_module, "create_engine", fake_create_engine)

    db_module._create_engine("sqlite://")

    assert captured["kwargs"]["poolclass"] is db_module.StaticPool
    assert captured["kwargs"]["connect_args"] == {"check_same_thread": False}


def test_get_mirror_engine_caches_engine(monkeypatch):
    """get_mirror_engine should memoize the created engine."""
    monkeypatch.setattr(db_module, "_mirror_engine", None)
    created = []

    def fake_create_engine(url):
        created.append(url)
        return f"engine:{url}"

    monkeypatch.setattr(db_module, "_create_engine", fake_create_engine)
    monkeypatch.setattr(db_module.dotenv, "load_dotenv", lambda: None)
    monkeypatch.setenv("MIRROR_DB_URL", "postgresql://mirror")

    engine_one = db_module.get_mirror_engine()
    engine_two = db_module.get_mirror_engine()

    assert engine_one is engine_two
    assert engine_one == "engine:postgresql://mirror"
    assert created == ["postgresql://mirror"]


def test_adapter_prefers_injected_engine(monkeypatch):
    """An injected engine should win over the global helper."""
    monkeypatch.setattr(db_module, "get_mirror_engine", lambda: "global")

    assert db_module.SqlAlchemyDatabaseEngineAdapter().get_mirror_engine() == (
        "global"
    )
    assert db_module.SqlAlchemyDatabaseEngineAdapter(
        "injected"
    ).get_mirror_engine() == "injected"
