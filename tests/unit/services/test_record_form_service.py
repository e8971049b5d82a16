from datetime import date

import pytest

from app import db
from app.admin import get_admin_config
from app.services.admin import RecordFormService
from tests.fixtures.models import Draft, Fan, Fanship, ManagingUser, NestedFan, Player, Team


def _state(states, name):
    return next(state for state in states if state.field.name == name)


@pytest.mark.unit
def test_new_player_form_preloads_has_one_candidates(app, seed) -> None:
    seed(Draft(date=date(2018, 6, 4), round=1, pick=1), Draft(date=date(2018, 6, 4), round=1, pick=2))

    with app.app_context():
        states = RecordFormService().build(get_admin_config().model("player"))
        draft = _state(states, "draft")

    assert draft.widget == "select"
    assert draft.input_id == "player_draft_id"
    assert draft.input_name == "player[draft_id]"
    assert draft.value == ""
    assert [option["label"] for option in draft.options] == ["Draft #1", "Draft #2"]
    assert draft.target_model == "draft"
    # 父记录尚未保存,不提供 "新建关联记录" 入口
    assert draft.create_params is None


@pytest.mark.unit
def test_edit_form_selects_current_target_and_prefills_create_link(app, seed) -> None:
    (player_id,) = seed(Player(name="Jackie Robinson", number=42))
    (draft_id,) = seed(Draft(date=date(2018, 6, 4), round=1, pick=1, player_id=int(player_id)))

    with app.app_context():
        player = db.session.get(Player, int(player_id))
        draft = _state(RecordFormService().build(get_admin_config().model("player"), player), "draft")

    assert draft.value == draft_id
    assert draft.is_selected(draft_id)
    assert draft.selected == [{"id": draft_id, "label": f"Draft #{draft_id}"}]
    assert draft.create_params == {"draft[player_id]": player_id}
    assert draft.create_link_args == {"draft[player_id]": player_id, "modal": "true"}


@pytest.mark.unit
def test_belongs_to_create_link_has_no_prefill(app) -> None:
    with app.app_context():
        player = _state(RecordFormService().build(get_admin_config().model("draft")), "player")

    assert player.input_name == "draft[player_id]"
    assert player.create_params == {}


@pytest.mark.unit
def test_custom_primary_key_values_are_used_for_options_and_create_link(app, seed) -> None:
    (user_id,) = seed(ManagingUser(name="Branch Rickey", email="branch@example.com"))

    with app.app_context():
        admin = get_admin_config()
        user_field = _state(RecordFormService().build(admin.model("managed_team")), "user")
        user = db.session.get(ManagingUser, int(user_id))
        team_field = _state(RecordFormService().build(admin.model("managing_user"), user), "team")

    assert user_field.input_name == "managed_team[manager]"
    assert user_field.options == [{"id": "branch@example.com", "label": "Branch Rickey"}]
    assert team_field.create_params == {"managed_team[manager]": "branch@example.com"}


@pytest.mark.unit
def test_submitted_keys_take_precedence_over_record_values(app, seed) -> None:
    (player_id,) = seed(Player(name="Jackie Robinson", number=42))

    with app.app_context():
        states = RecordFormService().build(
            get_admin_config().model("draft"),
            submitted={"player_id": player_id, "round": "abc"},
            errors={"round": ["格式无效"]},
        )

    player = _state(states, "player")
    round_state = _state(states, "round")
    assert player.value == player_id
    assert player.selected == [{"id": player_id, "label": "Jackie Robinson"}]
    assert round_state.value == "abc"
    assert round_state.errors == ["格式无效"]


@pytest.mark.unit
def test_remote_widget_skips_preload_but_keeps_selected_label(app, seed) -> None:
    (team_id,) = seed(Team(name="Dodgers"))
    (player_id,) = seed(Player(name="Pee Wee Reese", number=1, team_id=int(team_id)))

    with app.app_context():
        admin = get_admin_config()
        config = admin.configure(Player, overrides={"team": {"associated_collection_cache_all": False}})
        player = db.session.get(Player, int(player_id))
        team = _state(RecordFormService().build(config, player), "team")

    assert team.widget == "filtering_select"
    assert team.is_remote
    assert team.options == []
    assert team.value == team_id
    assert team.selected == [{"id": team_id, "label": "Dodgers"}]


@pytest.mark.unit
def test_nested_has_one_renders_child_fields_with_attributes_names(app, seed) -> None:
    fan_id, team_id = seed(Fan(name="Hilda"), Team(name="Dodgers"))
    seed(Fanship(fan_id=int(fan_id), team_id=int(team_id), since=date(1947, 4, 15)))

    with app.app_context():
        fan = db.session.get(NestedFan, int(fan_id))
        fanship = _state(RecordFormService().build(get_admin_config().model("nested_fan"), fan), "fanship")

    assert fanship.widget == "nested_form"
    assert [child.field.name for child in fanship.nested] == ["team", "since"]
    team, since = fanship.nested
    assert team.input_name == "nested_fan[fanship_attributes][team_id]"
    assert team.input_id == "nested_fan_fanship_attributes_team_id"
    assert team.value == team_id
    assert since.value == "1947-04-15"


@pytest.mark.unit
def test_composite_target_options_use_comma_joined_keys(app, seed) -> None:
    fan_id, team_id = seed(Fan(name="Hilda"), Team(name="Dodgers"))
    seed(Fanship(fan_id=int(fan_id), team_id=int(team_id)))

    with app.app_context():
        fan = db.session.get(Fan, int(fan_id))
        fanship = _state(RecordFormService().build(get_admin_config().model("fan"), fan), "fanship")

    key = f"{fan_id},{team_id}"
    assert fanship.value == key
    assert fanship.options == [{"id": key, "label": f"Fanship #{key}"}]
