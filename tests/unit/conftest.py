# tests/unit/conftest.py
"""单元测试专用 fixtures.

提供隔离的环境变量、内存 SQLite 上的测试应用与数据准备工具。
"""

from collections.abc import Callable, Iterator

import pytest
from flask import Flask
from flask.testing import FlaskClient
from sqlalchemy import inspect as sa_inspect

from app import create_app, db
from app.admin import get_admin_config
from app.admin.associations import encode_key
from app.settings import Settings
from tests.fixtures.models import FIXTURE_MODELS, NestedFan


@pytest.fixture(autouse=True)
def _unit_test_env(monkeypatch):
    """为 unit tests 强制注入隔离环境变量.

    目标:
    - unit tests 不依赖外部数据库等基础设施
    - 避免开发者本机环境变量影响测试稳定性
    """
    monkeypatch.setenv("FLASK_ENV", "testing")
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("SECRET_KEY", "test-secret-key")
    monkeypatch.setenv("ADMIN_MODELS", ",".join(FIXTURE_MODELS))
    monkeypatch.delenv("ADMIN_URL_PREFIX", raising=False)
    monkeypatch.delenv("ADMIN_ASSOCIATED_COLLECTION_LIMIT", raising=False)
    monkeypatch.delenv("ADMIN_REMOTE_CANDIDATE_LIMIT", raising=False)


@pytest.fixture(scope="function")
def app() -> Iterator[Flask]:
    """创建测试应用实例,建表并把 NestedFan.fanship 配置为嵌套表单."""
    settings = Settings.load()
    app = create_app(settings=settings)
    app.config["TESTING"] = True

    with app.app_context():
        db.create_all()
        get_admin_config().configure(NestedFan, overrides={"fanship": {"nested": True}})

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def client(app: Flask) -> FlaskClient:
    """创建测试客户端."""
    return app.test_client()


@pytest.fixture(scope="function")
def seed(app: Flask) -> Callable[..., list[str]]:
    """写入记录并返回各自编码后的主键(复合主键以逗号拼接)."""

    def _seed(*records: object) -> list[str]:
        with app.app_context():
            db.session.add_all(records)
            db.session.commit()
            return [encode_key(sa_inspect(record).identity) for record in records]

    return _seed
