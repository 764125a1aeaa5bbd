from pathlib import Path

import pytest
from pydantic import ValidationError

from muraja.application.config import AppConfig, resolve_config
from muraja.application.factory import build_review_service, get_backends
from muraja.infrastructure.adapters.memory import InMemoryCardCatalog
from muraja.infrastructure.adapters.sqlite import SqliteCardCatalog, SqliteReviewStateRepository


def test_defaults(isolated_env):
    config = resolve_config()

    assert config.backend == "sqlite"
    assert config.database_path == (isolated_env / ".local/share/muraja/muraja.db").resolve()
    assert config.default_due_limit == 20
    assert config.max_review_attempts == 3
    assert config.port == 8787


def test_env_overrides_defaults(monkeypatch, tmp_path):
    monkeypatch.setenv("MURAJA_BACKEND", "memory")
    monkeypatch.setenv("MURAJA_DATABASE_PATH", str(tmp_path / "x.db"))
    monkeypatch.setenv("MURAJA_LOG_LEVEL", "debug")

    config = resolve_config()

    assert config.backend == "memory"
    assert config.database_path == (tmp_path / "x.db").resolve()
    assert config.log_level == "DEBUG"


def test_toml_file_is_lowest_layer(isolated_env, monkeypatch):
    cfg = isolated_env / ".config/muraja/config.toml"
    cfg.parent.mkdir(parents=True)
    cfg.write_text('backend = "memory"\nport = 9100\nmax_review_attempts = 5\n')
    monkeypatch.setenv("MURAJA_PORT", "9200")

    config = resolve_config({"max_review_attempts": 7})

    assert config.backend == "memory"  # from file
    assert config.port == 9200  # env beats file
    assert config.max_review_attempts == 7  # overrides beat everything


def test_none_overrides_are_ignored(monkeypatch):
    monkeypatch.setenv("MURAJA_BACKEND", "memory")
    assert resolve_config({"backend": None}).backend == "memory"


def test_database_path_expands_user(isolated_env):
    config = resolve_config({"database_path": "~/study.db"})
    assert config.database_path == (isolated_env / "study.db").resolve()


def test_default_limit_clamped_to_max():
    config = resolve_config({"default_due_limit": 50, "max_due_limit": 10})
    assert config.default_due_limit == 10


@pytest.mark.parametrize("field,value", [("backend", "redis"), ("max_review_attempts", 0)])
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        resolve_config({field: value})


def test_factory_memory_backend():
    catalog, states = get_backends(AppConfig(backend="memory"))
    assert isinstance(catalog, InMemoryCardCatalog)


def test_factory_sqlite_backend(tmp_path):
    config = AppConfig(backend="sqlite", database_path=tmp_path / "f.db")
    catalog, states = get_backends(config)

    assert isinstance(catalog, SqliteCardCatalog)
    assert isinstance(states, SqliteReviewStateRepository)
    assert catalog.db is states.db
    assert states.db.path == Path(tmp_path / "f.db").resolve()


def test_build_review_service_applies_config():
    service = build_review_service(AppConfig(backend="memory", max_review_attempts=5, default_due_limit=4))
    assert service._max_attempts == 5
    assert service._default_due_limit == 4


def test_build_review_service_applies_due_cap(monkeypatch):
    monkeypatch.setenv("MURAJA_BACKEND", "memory")
    monkeypatch.setenv("MURAJA_MAX_DUE_LIMIT", "1000")

    service = build_review_service(resolve_config())

    assert service._max_due_limit == 1000
