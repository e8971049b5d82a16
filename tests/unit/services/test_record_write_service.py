from datetime import date

import pytest

from app import db
from app.admin import get_admin_config
from app.constants.system_constants import ErrorMessages
from app.core.exceptions import ConflictError, RecordValidationError
from app.services.admin import RecordWriteService
from tests.fixtures.models import Draft, Fan, Fanship, ManagedTeam, ManagingUser, NestedFan, Player, Team


@pytest.mark.unit
def test_create_player_with_has_one_draft(app, seed) -> None:
    (draft_id,) = seed(Draft(date=date(2018, 6, 4), round=1, pick=1))

    with app.app_context():
        player = RecordWriteService().upsert(
            get_admin_config().model("player"),
            {"name": "Jackie Robinson", "number": "42", "retired": ["0", "1"], "draft_id": draft_id},
        )

        assert player.id is not None
        assert player.retired is True
        assert db.session.get(Draft, int(draft_id)).player_id == player.id


@pytest.mark.unit
def test_field_errors_are_collected_before_raising(app) -> None:
    with app.app_context():
        with pytest.raises(RecordValidationError) as exc_info:
            RecordWriteService().upsert(
                get_admin_config().model("player"),
                {"name": "", "number": "forty-two", "position": "Goalie", "draft_id": "999"},
            )

    errors = exc_info.value.errors
    assert errors["name"] == [ErrorMessages.FIELD_REQUIRED]
    assert errors["number"] == [ErrorMessages.FIELD_INVALID]
    assert errors["position"] == [ErrorMessages.FIELD_NOT_IN_CHOICES]
    assert errors["draft"] == [ErrorMessages.ASSOCIATION_NOT_FOUND]


@pytest.mark.unit
def test_string_length_is_validated(app) -> None:
    with app.app_context():
        with pytest.raises(RecordValidationError) as exc_info:
            RecordWriteService().upsert(get_admin_config().model("team"), {"name": "x" * 51})

    assert exc_info.value.errors == {"name": [ErrorMessages.FIELD_TOO_LONG.format(length=50)]}


@pytest.mark.unit
def test_update_only_touches_submitted_fields(app, seed) -> None:
    (player_id,) = seed(Player(name="Duke Snider", number=4, born_on=date(1926, 9, 19)))

    with app.app_context():
        player = db.session.get(Player, int(player_id))
        RecordWriteService().upsert(get_admin_config().model("player"), {"number": "44"}, player)

        assert player.number == 44
        assert player.name == "Duke Snider"
        assert player.born_on == date(1926, 9, 19)


@pytest.mark.unit
def test_has_one_through_non_primary_key_column(app, seed) -> None:
    user_id, team_id = seed(
        ManagingUser(name="Branch Rickey", email="branch@example.com"),
        ManagedTeam(name="Dodgers"),
    )

    with app.app_context():
        user = db.session.get(ManagingUser, int(user_id))
        RecordWriteService().upsert(get_admin_config().model("managing_user"), {"team_id": team_id}, user)

        assert db.session.get(ManagedTeam, int(team_id)).manager == "branch@example.com"


@pytest.mark.unit
def test_belongs_to_through_non_primary_key_column(app, seed) -> None:
    seed(ManagingUser(name="Branch Rickey", email="branch@example.com"))

    with app.app_context():
        team = RecordWriteService().upsert(
            get_admin_config().model("managed_team"),
            {"name": "Dodgers", "manager": "branch@example.com"},
        )

        assert team.manager == "branch@example.com"
        assert team.user.name == "Branch Rickey"


@pytest.mark.unit
def test_nested_has_one_updates_composite_child(app, seed) -> None:
    fan_id, dodgers_id, giants_id = seed(Fan(name="Hilda"), Team(name="Dodgers"), Team(name="Giants"))
    seed(Fanship(fan_id=int(fan_id), team_id=int(dodgers_id)))

    with app.app_context():
        fan = db.session.get(NestedFan, int(fan_id))
        RecordWriteService().upsert(
            get_admin_config().model("nested_fan"),
            {"name": "Hilda", "fanship_attributes": {"team_id": giants_id, "since": "1951-10-03"}},
            fan,
        )
        db.session.commit()

    with app.app_context():
        fanships = db.session.scalars(db.select(Fanship)).all()
        assert [(row.fan_id, row.team_id, row.since) for row in fanships] == [
            (int(fan_id), int(giants_id), date(1951, 10, 3)),
        ]


@pytest.mark.unit
def test_nested_errors_are_prefixed_with_association_name(app, seed) -> None:
    (fan_id,) = seed(Fan(name="Hilda"))

    with app.app_context():
        fan = db.session.get(NestedFan, int(fan_id))
        with pytest.raises(RecordValidationError) as exc_info:
            RecordWriteService().upsert(
                get_admin_config().model("nested_fan"),
                {"fanship_attributes": {"team_id": "", "since": "not-a-date"}},
                fan,
            )

    assert exc_info.value.errors["fanship.since"] == [ErrorMessages.FIELD_INVALID]
    assert exc_info.value.errors["fanship.team"] == [ErrorMessages.FIELD_REQUIRED]


@pytest.mark.unit
def test_unique_violation_becomes_conflict(app, seed) -> None:
    seed(ManagingUser(name="Branch Rickey", email="branch@example.com"))

    with app.app_context():
        with pytest.raises(ConflictError):
            RecordWriteService().upsert(
                get_admin_config().model("managing_user"),
                {"name": "Impostor", "email": "branch@example.com"},
            )
        db.session.rollback()


@pytest.mark.unit
def test_delete_removes_record(app, seed) -> None:
    (team_id,) = seed(Team(name="Braves"))

    with app.app_context():
        config = get_admin_config().model("team")
        RecordWriteService().delete(config, db.session.get(Team, int(team_id)))
        db.session.commit()

    with app.app_context():
        assert db.session.get(Team, int(team_id)) is None


@pytest.mark.unit
def test_has_many_uses_configured_singular_key(app, seed) -> None:
    (player_id,) = seed(Player(name="Duke Snider", number=4))

    with app.app_context():
        config = get_admin_config().configure(Team, overrides={"players": {"singular": "athlete"}})
        team = RecordWriteService().upsert(config, {"name": "Dodgers", "athlete_ids": [player_id]})

        assert [player.id for player in team.players] == [int(player_id)]
