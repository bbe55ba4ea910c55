from __future__ import annotations

import importlib
import logging
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import inspect

from userapi.app import build_repository, create_app
from userapi.core.config import get_settings
from userapi.core.log import REQUEST_LOGGER_NAME
from userapi.db.create_tables import create_all
from userapi.db.session import create_db_engine
from userapi.domain.filters import UserFilter
from userapi.domain.users import ValidationError
from userapi.repositories.json_storage import dump_users, load_users
from userapi.repositories.memory_repository import MemoryRepository
from userapi.repositories.sql_repository import SQLRepository

from conftest import ROOT, make_settings, make_user

EXAMPLE_SEED = ROOT / "data" / "users.example.json"


def test_settings_defaults(monkeypatch):
    for name in ("USER_STORE", "DATABASE_URL", "SEED_FILE", "REQUEST_LOG", "LOG_LEVEL", "SQL_ECHO", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    settings = get_settings()
    assert settings.user_store == "memory"
    assert settings.log_level == "INFO"
    assert settings.sql_echo is False
    assert settings.cors_origins == ()


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("USER_STORE", "SQL")
    monkeypatch.setenv("DATABASE_URL", " sqlite:///x.db ")
    monkeypatch.setenv("SQL_ECHO", "yes")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
    settings = get_settings()
    assert settings.user_store == "sql"
    assert settings.database_url == "sqlite:///x.db"
    assert settings.sql_echo is True
    assert settings.log_level == "DEBUG"
    assert settings.cors_origins == ("http://a.test", "http://b.test")


def test_settings_reject_unknown_store(monkeypatch):
    monkeypatch.setenv("USER_STORE", "redis")
    with pytest.raises(RuntimeError):
        get_settings()


def test_load_example_seed():
    users = load_users(EXAMPLE_SEED)
    assert len(users) == 5
    assert sum(1 for u in users if u.deleted is not None) == 2
    assert users[1].phone == "+48 123-456-789"


def test_load_missing_file_is_empty(tmp_path):
    assert load_users(tmp_path / "nope.json") == []


def test_dump_then_load(tmp_path):
    path = tmp_path / "users.json"
    gone = make_user("gone@x.com", deleted=datetime(2020, 3, 28, tzinfo=timezone.utc))
    dump_users(path, [make_user(), gone])
    assert load_users(path) == [make_user(), gone]


def test_memory_store_seeded_from_file():
    repo = build_repository(make_settings(seed_file=str(EXAMPLE_SEED)))
    assert isinstance(repo, MemoryRepository)
    assert len(repo.list_users(UserFilter())) == 3
    assert repo.get_user("bobby.tables@xkcd.com").surname == "Tables"
    assert len(repo.list_users(UserFilter(deleted=True))) == 2


def test_sql_store_from_settings(tmp_path):
    url = f"sqlite:///{tmp_path / 'app.db'}"
    repo = build_repository(make_settings(user_store="sql", database_url=url))
    try:
        assert isinstance(repo, SQLRepository)
        repo.create_user(make_user())
        assert repo.get_user("john@smith.com") == make_user()
    finally:
        repo.close()


def test_sql_store_requires_url():
    with pytest.raises(RuntimeError):
        build_repository(make_settings(user_store="sql", database_url=""))


def test_sql_history_rows_share_email(sql_repo):
    for second in (1, 2):
        sql_repo.insert_history(make_user("bobby@x.com", deleted=datetime(2020, 3, 28, 12, 21, second, tzinfo=timezone.utc)))
    sql_repo.create_user(make_user("bobby@x.com"))
    assert len(sql_repo.list_users(UserFilter(deleted=None))) == 3
    with pytest.raises(ValueError):
        sql_repo.insert_history(make_user("bobby@x.com"))


def test_sql_history_rejects_incomplete_records(sql_repo):
    gone = datetime(2020, 3, 28, tzinfo=timezone.utc)
    with pytest.raises(ValidationError) as info:
        sql_repo.insert_history(make_user("bobby@x.com", name=None, deleted=gone))
    assert info.value.field == "name"
    with pytest.raises(ValidationError):
        sql_repo.insert_history(make_user("bobby@x.com", technology="cobol", deleted=gone))
    assert sql_repo.list_users(UserFilter(deleted=None)) == []


def test_request_log_file(tmp_path):
    log_file = tmp_path / "requests.log"
    app = create_app(make_settings(request_log=str(log_file)), repository=MemoryRepository())
    logger = logging.getLogger(REQUEST_LOGGER_NAME)
    try:
        TestClient(app).get("/v1/user?technology=go")
        for handler in logger.handlers:
            handler.flush()
        line = Path(log_file).read_text(encoding="utf-8").strip()
        assert "GET" in line
        assert "/v1/user?technology=go" in line
    finally:
        for handler in list(logger.handlers):
            if isinstance(handler, logging.FileHandler):
                logger.removeHandler(handler)
                handler.close()


def test_create_tables_builds_partial_unique_index(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'schema.db'}")
    try:
        create_all(engine)
        indexes = {ix["name"]: ix for ix in inspect(engine).get_indexes("users")}
        assert indexes["users_only_one_active"]["unique"]
        assert indexes["users_only_one_active"]["column_names"] == ["email"]
    finally:
        engine.dispose()


def test_app_factory_module_builds_app(monkeypatch):
    monkeypatch.delenv("USER_STORE", raising=False)
    monkeypatch.delenv("SEED_FILE", raising=False)
    monkeypatch.delenv("REQUEST_LOG", raising=False)
    module = importlib.import_module("userapi.app_factory")
    module.get_app.cache_clear()
    try:
        assert TestClient(module.app).get("/v1/user").status_code == 200
        assert module.app is module.get_app()
    finally:
        module.get_app.cache_clear()


def test_app_factory_import_does_not_build_app(monkeypatch):
    monkeypatch.setenv("USER_STORE", "sql")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    module = importlib.reload(importlib.import_module("userapi.app_factory"))
    module.get_app.cache_clear()
    try:
        with pytest.raises(RuntimeError):
            module.app
    finally:
        module.get_app.cache_clear()
