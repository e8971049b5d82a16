import pytest

from app import db
from app.core.exceptions import ConflictError, NotFoundError, SystemError
from app.infra.route_safety import safe_route_call
from tests.fixtures.models import ManagingUser, Team


def _count(model: type) -> int:
    return db.session.scalar(db.select(db.func.count()).select_from(model))


@pytest.mark.unit
def test_safe_route_call_commits_on_success(app) -> None:
    with app.app_context():
        result = safe_route_call(
            lambda: db.session.add(Team(name="Giants")) or "ok",
            module="admin",
            action="create",
            public_error="创建失败",
        )
        assert result == "ok"
        db.session.expunge_all()
        assert _count(Team) == 1


@pytest.mark.unit
def test_safe_route_call_without_commit_leaves_changes_pending(app) -> None:
    with app.app_context():
        safe_route_call(
            lambda: db.session.add(Team(name="Mets")),
            module="admin",
            action="list",
            public_error="读取失败",
            commit=False,
        )
        db.session.rollback()
        assert _count(Team) == 0


@pytest.mark.unit
def test_safe_route_call_reraises_app_errors_after_rollback(app) -> None:
    def _execute() -> None:
        db.session.add(Team(name="Cubs"))
        db.session.flush()
        raise NotFoundError("missing")

    with app.app_context():
        with pytest.raises(NotFoundError):
            safe_route_call(_execute, module="admin", action="update", public_error="更新失败")
        assert _count(Team) == 0


@pytest.mark.unit
def test_safe_route_call_wraps_unexpected_errors(app) -> None:
    def _execute() -> None:
        raise RuntimeError("boom")

    with app.app_context():
        with pytest.raises(SystemError) as exc_info:
            safe_route_call(_execute, module="admin", action="delete", public_error="删除失败")
        assert exc_info.value.message == "删除失败"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.unit
def test_safe_route_call_maps_commit_constraint_violation_to_conflict(app) -> None:
    def _execute() -> None:
        db.session.add_all(
            [
                ManagingUser(name="A", email="same@example.com"),
                ManagingUser(name="B", email="same@example.com"),
            ],
        )

    with app.app_context():
        with pytest.raises(ConflictError):
            safe_route_call(_execute, module="admin", action="create", public_error="创建失败")
        assert _count(ManagingUser) == 0
