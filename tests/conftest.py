from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Make the userapi package importable during local test runs
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from userapi.core import config as core_config  # noqa: E402
from userapi.core.config import Settings  # noqa: E402
from userapi.domain.users import User  # noqa: E402
from userapi.repositories.memory_repository import MemoryRepository  # noqa: E402
from userapi.repositories.sql_repository import SQLRepository  # noqa: E402


def make_user(email: str = "john@smith.com", **overrides) -> User:
    values = dict(
        name="John",
        surname="Smith",
        email=email,
        password="some pwd",
        birthday=datetime(1950, 1, 1, tzinfo=timezone.utc),
        address="Some Street 17\nSome City",
        phone="111 222 333",
        technology="go",
        deleted=None,
    )
    values.update(overrides)
    return User(**values)


def make_settings(**overrides) -> Settings:
    values = dict(
        app_env="test",
        user_store="memory",
        database_url="",
        seed_file="",
        request_log="",
        log_level="WARNING",
        sql_echo=False,
        cors_origins=(),
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def clean_settings_cache():
    core_config.get_settings.cache_clear()
    yield
    core_config.get_settings.cache_clear()


@pytest.fixture()
def sql_repo(tmp_path):
    """SQLRepository on a temporary SQLite file, disposed after the test."""
    db_file = tmp_path / "test.db"
    repo = SQLRepository.from_url(f"sqlite:///{db_file}")
    yield repo
    repo.close()


@pytest.fixture(params=["memory", "sql"])
def repo(request, tmp_path):
    """Every storage backend, so both satisfy the same behaviour."""
    if request.param == "memory":
        store = MemoryRepository()
        yield store
        store.close()
    else:
        yield request.getfixturevalue("sql_repo")
