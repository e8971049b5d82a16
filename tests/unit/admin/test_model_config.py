import pytest

from app.admin import AdminConfig, get_admin_config
from app.admin.config import import_models
from app.admin.fields import build_registry
from app.core.exceptions import ConfigurationError, NotFoundError
from tests.fixtures.models import Draft, Fanship, NestedFan, Player, Team


@pytest.mark.unit
def test_admin_models_are_loaded_from_settings(app) -> None:
    with app.app_context():
        admin = get_admin_config()

        names = {config.name for config in admin.models}
        assert {"player", "draft", "team", "managing_user", "managed_team", "fan", "fanship", "nested_fan"} <= names
        assert admin.model("nested_fan").model is NestedFan
        assert admin.model("nested_fan").label == "Nested fan"
        assert admin.model(Player).name == "player"


@pytest.mark.unit
def test_default_field_order_replaces_foreign_key_with_belongs_to(app) -> None:
    with app.app_context():
        config = get_admin_config().model("player")

        assert [field.name for field in config.fields] == [
            "id",
            "name",
            "number",
            "position",
            "retired",
            "born_on",
            "notes",
            "team",
            "draft",
        ]
        assert "id" not in [field.name for field in config.form_fields]


@pytest.mark.unit
def test_association_field_form_naming(app) -> None:
    with app.app_context():
        admin = get_admin_config()
        draft_field = admin.model("player").field("draft")
        team_field = admin.model("player").field("team")
        players_field = admin.model("team").field("players")
        user_field = admin.model("managed_team").field("user")

        assert draft_field.type_name == "has_one_association"
        assert draft_field.method_name == "draft_id"
        assert draft_field.input_id == "player_draft_id"
        assert draft_field.input_name == "player[draft_id]"
        assert draft_field.view_helper == "select"
        assert team_field.method_name == "team_id"
        assert players_field.input_name == "team[player_ids][]"
        assert players_field.view_helper == "select_multiple"
        assert user_field.method_name == "manager"


@pytest.mark.unit
def test_required_flags_follow_column_nullability(app) -> None:
    with app.app_context():
        admin = get_admin_config()
        player = admin.model("player")

        assert player.field("name").required is True
        assert player.field("number").required is True
        assert player.field("retired").required is False
        assert player.field("draft").required is False
        assert admin.model("draft").field("player").required is False
        assert admin.model("fanship").field("fan").required is True


@pytest.mark.unit
def test_object_label_falls_back_to_model_label_and_key(app) -> None:
    with app.app_context():
        admin = get_admin_config()

        assert admin.model("fanship").object_label(Fanship(fan_id=1, team_id=2)) == "Fanship #1,2"
        assert admin.model("player").object_label(Player(id=3, name="Roy Campanella")) == "Roy Campanella"
        assert admin.model("fanship").decode_object_key("1,2") == (1, 2)


@pytest.mark.unit
def test_field_overrides_switch_widget_to_remote(app) -> None:
    with app.app_context():
        admin = get_admin_config()
        config = admin.configure(Player, overrides={"team": {"associated_collection_cache_all": False}})

        assert config.field("team").view_helper == "filtering_select"
        assert admin.model("player") is config


@pytest.mark.unit
def test_explicit_field_list_and_unknown_names() -> None:
    admin = AdminConfig(build_registry())

    config = admin.configure(Draft, fields=["player", "round", "pick"])
    assert [field.name for field in config.fields] == ["player", "round", "pick"]

    with pytest.raises(ConfigurationError):
        admin.configure(Draft, fields=["player", "coach"])
    with pytest.raises(ConfigurationError):
        admin.configure(Draft, overrides={"coach": {"visible": False}})
    with pytest.raises(ConfigurationError):
        config.field("coach")


@pytest.mark.unit
def test_association_targets_outside_admin_are_hidden() -> None:
    admin = AdminConfig(build_registry())
    admin.configure(Player)

    assert admin.is_included(Player)
    assert not admin.is_included(Team)
    assert admin.config_for(Draft).included is False
    with pytest.raises(NotFoundError):
        admin.model("draft")
    assert [config.name for config in admin.models] == ["player"]


@pytest.mark.unit
def test_import_models_rejects_bad_paths() -> None:
    assert import_models(["tests.fixtures.models:Player"]) == [Player]

    with pytest.raises(ConfigurationError):
        import_models(["tests.fixtures.models:Coach"])
    with pytest.raises(ConfigurationError):
        import_models(["tests.fixtures.models:POSITIONS"])


@pytest.mark.unit
def test_has_many_singular_option_controls_param_name(app) -> None:
    with app.app_context():
        admin = get_admin_config()
        assert admin.model("team").field("players").method_name == "player_ids"

        config = admin.configure(Team, overrides={"players": {"singular": "athlete"}})
        players_field = config.field("players")

        assert players_field.method_name == "athlete_ids"
        assert players_field.input_name == "team[athlete_ids][]"
