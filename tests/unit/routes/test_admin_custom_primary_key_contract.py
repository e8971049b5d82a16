import pytest

from app import db
from tests.fixtures.models import ManagedTeam, ManagingUser


@pytest.mark.unit
def test_managed_team_form_uses_email_as_option_value(client, seed) -> None:
    seed(ManagingUser(name="Branch Rickey", email="branch@example.com"))

    response = client.get("/admin/managed_team/new")

    assert response.status_code == 200
    html = response.get_data(as_text=True)
    assert 'name="managed_team[manager]"' in html
    assert '<option value="branch@example.com">Branch Rickey</option>' in html


@pytest.mark.unit
def test_create_managed_team_stores_manager_email(app, client, seed) -> None:
    seed(ManagingUser(name="Branch Rickey", email="branch@example.com"))

    response = client.post(
        "/admin/managed_team",
        data={"managed_team[name]": "Dodgers", "managed_team[manager]": "branch@example.com"},
    )

    assert response.status_code == 302
    with app.app_context():
        team = db.session.scalars(db.select(ManagedTeam)).one()
        assert team.manager == "branch@example.com"


@pytest.mark.unit
def test_update_managing_user_assigns_has_one_team(app, client, seed) -> None:
    user_id, team_id = seed(
        ManagingUser(name="Branch Rickey", email="branch@example.com"),
        ManagedTeam(name="Dodgers"),
    )

    response = client.post(
        f"/admin/managing_user/{user_id}/edit",
        data={"managing_user[team_id]": team_id},
    )

    assert response.status_code == 302
    with app.app_context():
        assert db.session.get(ManagedTeam, int(team_id)).manager == "branch@example.com"

    html = client.get(f"/admin/managing_user/{user_id}").get_data(as_text=True)
    assert f'href="/admin/managed_team/{team_id}"' in html


@pytest.mark.unit
def test_edit_managing_user_offers_create_link_prefilled_with_email(client, seed) -> None:
    (user_id,) = seed(ManagingUser(name="Branch Rickey", email="branch@example.com"))

    response = client.get(f"/admin/managing_user/{user_id}/edit")

    assert response.status_code == 200
    assert "managed_team%5Bmanager%5D=branch" in response.get_data(as_text=True)


@pytest.mark.unit
def test_unknown_manager_email_is_a_field_error(client) -> None:
    response = client.post(
        "/admin/managed_team",
        data={"managed_team[name]": "Dodgers", "managed_team[manager]": "nobody@example.com"},
    )

    assert response.status_code == 422
    assert "未找到关联记录" in response.get_data(as_text=True)
