from datetime import date

import pytest

from app import db
from app.admin.associations import AssociationResolver, describe_association
from app.core.exceptions import AssociationNotFoundError, MalformedKeyError, ValidationError
from tests.fixtures.models import Draft, Fan, Fanship, ManagedTeam, ManagingUser, Player, Team


def _draft(**values) -> Draft:
    return Draft(date=date(2018, 6, 4), round=1, pick=values.pop("pick", 1), **values)


@pytest.mark.unit
def test_resolve_and_apply_has_one_sets_foreign_key_on_target(app) -> None:
    with app.app_context():
        player = Player(name="Jackie Robinson", number=42)
        draft = _draft()
        db.session.add_all([player, draft])
        db.session.flush()

        resolver = AssociationResolver()
        descriptor = describe_association(Player, "draft")
        operation = resolver.resolve(player, descriptor, str(draft.id))
        resolver.apply(operation)
        db.session.flush()

        assert operation.target is draft
        assert draft.player_id == player.id
        assert resolver.current_key(player, descriptor) == str(draft.id)


@pytest.mark.unit
def test_blank_value_clears_nullable_has_one(app) -> None:
    with app.app_context():
        player = Player(name="Jackie Robinson", number=42)
        draft = _draft(player=player)
        db.session.add_all([player, draft])
        db.session.flush()

        resolver = AssociationResolver()
        descriptor = describe_association(Player, "draft")
        operation = resolver.resolve(player, descriptor, "")
        resolver.apply(operation)
        db.session.flush()

        assert operation.clears
        assert draft.player_id is None
        assert resolver.current_key(player, descriptor) == ""


@pytest.mark.unit
def test_replacing_has_one_target_unlinks_previous_target(app) -> None:
    with app.app_context():
        player = Player(name="Jackie Robinson", number=42)
        first = _draft(player=player, pick=1)
        second = _draft(pick=2)
        db.session.add_all([player, first, second])
        db.session.flush()

        resolver = AssociationResolver()
        resolver.apply(resolver.resolve(player, describe_association(Player, "draft"), str(second.id)))
        db.session.flush()

        assert second.player_id == player.id
        assert first.player_id is None


@pytest.mark.unit
def test_unknown_target_raises_association_not_found(app) -> None:
    with app.app_context():
        player = Player(name="Jackie Robinson", number=42)
        db.session.add(player)
        db.session.flush()

        with pytest.raises(AssociationNotFoundError) as exc_info:
            AssociationResolver().resolve(player, describe_association(Player, "draft"), "999")

        assert exc_info.value.field_name == "draft"
        assert exc_info.value.target == "Draft"


@pytest.mark.unit
def test_single_valued_association_rejects_multiple_keys(app) -> None:
    with app.app_context():
        with pytest.raises(MalformedKeyError):
            AssociationResolver().resolve(Player(), describe_association(Player, "draft"), ["1", "2"])


@pytest.mark.unit
def test_has_many_deduplicates_submitted_keys(app) -> None:
    with app.app_context():
        team = Team(name="Dodgers")
        players = [Player(name="Pee Wee Reese", number=1), Player(name="Duke Snider", number=4)]
        db.session.add_all([team, *players])
        db.session.flush()

        resolver = AssociationResolver()
        descriptor = describe_association(Team, "players")
        keys = [str(players[0].id), str(players[0].id), str(players[1].id)]
        operation = resolver.resolve(team, descriptor, keys)
        resolver.apply(operation)
        db.session.flush()

        assert len(operation.targets) == 2
        assert {player.team_id for player in players} == {team.id}
        assert sorted(resolver.current_key(team, descriptor)) == sorted({keys[0], keys[2]})


@pytest.mark.unit
def test_load_target_by_declared_non_primary_column(app) -> None:
    with app.app_context():
        user = ManagingUser(name="Branch Rickey", email="branch@example.com")
        db.session.add(user)
        db.session.flush()

        target = AssociationResolver().load_target(describe_association(ManagedTeam, "user"), "branch@example.com")

        assert target is user


@pytest.mark.unit
def test_load_target_by_composite_key(app) -> None:
    with app.app_context():
        fan = Fan(name="Hilda")
        team = Team(name="Dodgers")
        db.session.add_all([fan, team])
        db.session.flush()
        fanship = Fanship(fan_id=fan.id, team_id=team.id)
        db.session.add(fanship)
        db.session.flush()

        resolver = AssociationResolver()
        descriptor = describe_association(Fan, "fanship")

        assert resolver.load_target(descriptor, f"{fan.id},{team.id}") is fanship
        with pytest.raises(AssociationNotFoundError):
            resolver.load_target(descriptor, f"{fan.id},{team.id + 100}")
        with pytest.raises(MalformedKeyError):
            resolver.load_target(descriptor, str(fan.id))


@pytest.mark.unit
def test_clearing_has_one_with_non_nullable_foreign_key_is_rejected(app) -> None:
    with app.app_context():
        fan = Fan(name="Hilda")
        team = Team(name="Dodgers")
        db.session.add_all([fan, team])
        db.session.flush()
        db.session.add(Fanship(fan_id=fan.id, team_id=team.id))
        db.session.flush()
        db.session.refresh(fan)

        with pytest.raises(ValidationError):
            AssociationResolver().resolve(fan, describe_association(Fan, "fanship"), "")
