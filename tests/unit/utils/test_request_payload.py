import pytest
from flask import Flask
from werkzeug.datastructures import MultiDict

from app.utils.request_payload import parse_payload, split_bracket_key


@pytest.mark.unit
def test_split_bracket_key_keeps_empty_segment_for_list_suffix() -> None:
    assert split_bracket_key("team[player_ids][]") == ["team", "player_ids", ""]
    assert split_bracket_key("nested_fan[fanship_attributes][team_id]") == [
        "nested_fan",
        "fanship_attributes",
        "team_id",
    ]
    assert split_bracket_key("plain") == ["plain"]


@pytest.mark.unit
def test_parse_payload_multidict_trims_strings_by_default() -> None:
    payload: MultiDict[str, str] = MultiDict([("player[name]", "  Jackie  ")])
    sanitized = parse_payload(payload, param_key="player")
    assert sanitized["name"] == "Jackie"


@pytest.mark.unit
def test_parse_payload_multidict_ignores_other_param_keys_and_reserved_keys() -> None:
    payload: MultiDict[str, str] = MultiDict(
        [
            ("player[name]", "Jackie"),
            ("draft[round]", "1"),
            ("_method", "put"),
            ("modal", "true"),
            ("player", "ignored"),
        ],
    )
    sanitized = parse_payload(payload, param_key="player")
    assert sanitized == {"name": "Jackie"}


@pytest.mark.unit
def test_parse_payload_multidict_list_fields_are_always_list() -> None:
    payload: MultiDict[str, str] = MultiDict([("team[player_ids]", "  3  ")])
    sanitized = parse_payload(payload, param_key="team", list_fields=["player_ids"])
    assert sanitized["player_ids"] == ["3"]


@pytest.mark.unit
def test_parse_payload_multidict_bracket_suffix_collects_values() -> None:
    payload: MultiDict[str, str] = MultiDict([("team[player_ids][]", "1"), ("team[player_ids][]", "2")])
    sanitized = parse_payload(payload, param_key="team")
    assert sanitized["player_ids"] == ["1", "2"]


@pytest.mark.unit
def test_parse_payload_multidict_non_list_fields_take_last_value() -> None:
    payload: MultiDict[str, str] = MultiDict([("player[retired]", "0"), ("player[retired]", "1")])
    sanitized = parse_payload(payload, param_key="player")
    assert sanitized["retired"] == "1"


@pytest.mark.unit
def test_parse_payload_multidict_expands_nested_attributes() -> None:
    payload: MultiDict[str, str] = MultiDict(
        [
            ("nested_fan[name]", "Hilda"),
            ("nested_fan[fanship_attributes][team_id]", "2"),
            ("nested_fan[fanship_attributes][since]", "1951-10-03"),
        ],
    )
    sanitized = parse_payload(payload, param_key="nested_fan")
    assert sanitized == {"name": "Hilda", "fanship_attributes": {"team_id": "2", "since": "1951-10-03"}}


@pytest.mark.unit
def test_parse_payload_mapping_unwraps_param_key_and_keeps_scalars() -> None:
    sanitized = parse_payload({"team": {"name": " Dodgers ", "founded": 1883}}, param_key="team")
    assert sanitized == {"name": "Dodgers", "founded": 1883}


@pytest.mark.unit
def test_parse_payload_mapping_list_field_accepts_scalar_and_list() -> None:
    sanitized = parse_payload({"player_ids": "  3  "}, list_fields=["player_ids"])
    assert sanitized["player_ids"] == ["3"]

    sanitized = parse_payload({"player_ids": ["  3  ", "4"]}, list_fields=["player_ids"])
    assert sanitized["player_ids"] == ["3", "4"]


@pytest.mark.unit
def test_parse_payload_strips_nul_characters() -> None:
    sanitized = parse_payload({"name": "Jack\x00ie"})
    assert sanitized["name"] == "Jackie"


@pytest.mark.unit
def test_parse_payload_rejects_unsupported_payload_type() -> None:
    with pytest.raises(TypeError):
        parse_payload(["name", "Jackie"])


@pytest.mark.unit
def test_parse_payload_guard_allows_single_call_per_request() -> None:
    app = Flask(__name__)
    with app.test_request_context("/"):
        sanitized = parse_payload({"name": "alice"})
        assert sanitized["name"] == "alice"

    with app.test_request_context("/"):
        sanitized = parse_payload({"name": "bob"})
        assert sanitized["name"] == "bob"


@pytest.mark.unit
def test_parse_payload_guard_raises_when_called_twice_in_request() -> None:
    app = Flask(__name__)
    with app.test_request_context("/"):
        parse_payload({"name": "alice"})
        with pytest.raises(RuntimeError, match="parse_payload"):
            parse_payload({"name": "bob"})
