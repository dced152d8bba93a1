import pytest

from salesboard.config import Settings, load_settings
from salesboard.db import PostgresStore
from salesboard.local_store import LocalStore
from salesboard.rest_store import RestStore
from salesboard.storage import select_adapter


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("DATABASE_URL", "SUPABASE_URL", "SUPABASE_ANON", "SALES_DB"):
        monkeypatch.delenv(var, raising=False)


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(tmp_path / "nope.yaml")
    assert settings.backend == "auto"
    assert settings.postgres.database_url_env_var == "DATABASE_URL"


def test_load_yaml(tmp_path, monkeypatch):
    config = tmp_path / "settings.yaml"
    config.write_text(
        "backend: Postgres\n"
        "log_level: debug\n"
        "postgres:\n"
        "  database_url_env_var: SALES_DB\n"
        "local:\n"
        f"  path: {tmp_path / 'store.json'}\n"
    )
    monkeypatch.setenv("SALES_DB", "postgresql://localhost/sales")

    settings = load_settings(config)

    assert settings.backend == "postgres"
    assert settings.log_level == "DEBUG"
    assert settings.postgres.database_url == "postgresql://localhost/sales"
    assert settings.local.file_path == tmp_path / "store.json"


def test_relative_local_path_is_resolved():
    path = Settings().local.file_path
    assert path.is_absolute()
    assert path.parts[-2:] == ("data", "salesboard.json")


def test_auto_falls_back_to_local(tmp_path):
    settings = Settings()
    settings.local.path = str(tmp_path / "store.json")
    adapter = select_adapter(settings)
    assert isinstance(adapter, LocalStore)
    assert adapter.path == tmp_path / "store.json"


def test_auto_prefers_rest_then_postgres(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://localhost/sales")
    assert isinstance(select_adapter(Settings()), PostgresStore)

    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON", "anon-key")
    assert isinstance(select_adapter(Settings()), RestStore)


def test_explicit_backend_requires_configuration():
    with pytest.raises(ValueError):
        select_adapter(Settings(backend="postgres"))
    with pytest.raises(ValueError):
        select_adapter(Settings(backend="sqlite"))
