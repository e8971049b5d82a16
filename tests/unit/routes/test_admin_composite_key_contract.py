from datetime import date

import pytest

from app import db
from tests.fixtures.models import Fan, Fanship, Team


@pytest.mark.unit
def test_create_fanship_with_composite_key(app, client, seed) -> None:
    fan_id, team_id = seed(Fan(name="Hilda"), Team(name="Dodgers"))

    response = client.post(
        "/admin/fanship",
        data={"fanship[fan_id]": fan_id, "fanship[team_id]": team_id, "fanship[since]": "1947-04-15"},
    )

    assert response.status_code == 302
    with app.app_context():
        fanship = db.session.get(Fanship, (int(fan_id), int(team_id)))
        assert fanship is not None
        assert fanship.since == date(1947, 4, 15)

    show = client.get(f"/admin/fanship/{fan_id},{team_id}")
    assert show.status_code == 200
    assert f"Fanship #{fan_id},{team_id}" in show.get_data(as_text=True)


@pytest.mark.unit
def test_fan_edit_form_selects_composite_fanship(client, seed) -> None:
    fan_id, team_id = seed(Fan(name="Hilda"), Team(name="Dodgers"))
    seed(Fanship(fan_id=int(fan_id), team_id=int(team_id)))

    response = client.get(f"/admin/fan/{fan_id}/edit")

    assert response.status_code == 200
    key = f"{fan_id},{team_id}"
    assert f'<option value="{key}" selected>Fanship #{key}</option>' in response.get_data(as_text=True)


@pytest.mark.unit
def test_assign_fanship_to_fan_by_composite_key(app, client, seed) -> None:
    hilda, gladys, team_id = seed(Fan(name="Hilda"), Fan(name="Gladys"), Team(name="Dodgers"))
    seed(Fanship(fan_id=int(hilda), team_id=int(team_id)))

    response = client.put(f"/admin/fan/{gladys}", data={"fan[fanship_id]": f"{hilda},{team_id}"})

    assert response.status_code == 302
    with app.app_context():
        fanships = db.session.scalars(db.select(Fanship)).all()
        assert [(row.fan_id, row.team_id) for row in fanships] == [(int(gladys), int(team_id))]


@pytest.mark.unit
def test_nested_fan_update_changes_fanship_team_and_since(app, client, seed) -> None:
    fan_id, dodgers_id, giants_id = seed(Fan(name="Hilda"), Team(name="Dodgers"), Team(name="Giants"))
    seed(Fanship(fan_id=int(fan_id), team_id=int(dodgers_id)))

    edit = client.get(f"/admin/nested_fan/{fan_id}/edit").get_data(as_text=True)
    assert 'name="nested_fan[fanship_attributes][team_id]"' in edit
    assert 'name="nested_fan[fanship_attributes][fan_id]"' not in edit

    response = client.put(
        f"/admin/nested_fan/{fan_id}",
        data={
            "nested_fan[name]": "Hilda",
            "nested_fan[fanship_attributes][team_id]": giants_id,
            "nested_fan[fanship_attributes][since]": "1951-10-03",
        },
    )

    assert response.status_code == 302
    with app.app_context():
        fanships = db.session.scalars(db.select(Fanship)).all()
        assert [(row.fan_id, row.team_id, row.since) for row in fanships] == [
            (int(fan_id), int(giants_id), date(1951, 10, 3)),
        ]


@pytest.mark.unit
def test_malformed_composite_key_in_url_is_not_found(client) -> None:
    response = client.get("/admin/fanship/1")

    assert response.status_code == 404
    payload = response.get_json()
    assert payload["error"] is True
    assert payload["message_code"] == "MALFORMED_KEY"
