from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from grovesmith import persistence
from grovesmith.persistence import CharitableCause, Distribution, Manager, Recipient
from grovesmith.webapp import application


@pytest.fixture()
def web(engine, clock, monkeypatch):
    monkeypatch.setattr(persistence, "engine", engine)
    monkeypatch.setattr(application, "_time_provider", clock)
    return application.app


def sign_up(client: TestClient, email: str = "pat@example.com") -> None:
    response = client.post(
        "/signup",
        data={"email": email, "password": "s3cret-pass", "full_name": "Pat"},
        follow_redirects=False,
    )
    assert response.status_code == 302
    assert response.headers["location"] == "/dashboard"


def add_recipient(client: TestClient, engine, name: str = "Ava", allowance: str = "10.00") -> str:
    response = client.post("/recipients", data={"name": name, "allowance_amount": allowance}, follow_redirects=False)
    assert response.status_code == 302
    with Session(engine) as session:
        recipient = session.exec(select(Recipient).where(Recipient.name == name)).one()
    assert response.headers["location"] == f"/recipients/{recipient.id}?section=overview"
    return recipient.id


def test_pages_require_sign_in(web) -> None:
    client = TestClient(web)
    for path in ("/dashboard", "/recipients/abc"):
        response = client.get(path, follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/login"
    response = client.post("/recipients", data={"name": "Ava", "allowance_amount": "5"}, follow_redirects=False)
    assert response.headers["location"] == "/login"
    assert "Sign in" in client.get("/login").text


def test_sign_up_creates_manager_profile_on_first_page(web, engine) -> None:
    client = TestClient(web)
    sign_up(client)
    page = client.get("/dashboard")
    assert page.status_code == 200
    assert "Welcome to Grovesmith!" in page.text
    assert "No recipients yet" in page.text
    with Session(engine) as session:
        managers = session.exec(select(Manager)).all()
    assert [manager.email for manager in managers] == ["pat@example.com"]


def test_bad_credentials_show_a_notice(web) -> None:
    client = TestClient(web)
    sign_up(client)
    client.post("/logout", follow_redirects=False)
    response = client.post("/login", data={"email": "pat@example.com", "password": "wrong"}, follow_redirects=False)
    assert response.headers["location"] == "/login"
    assert "Invalid email or password." in client.get("/login").text
    response = client.post(
        "/login", data={"email": "pat@example.com", "password": "s3cret-pass"}, follow_redirects=False
    )
    assert response.headers["location"] == "/dashboard"


def test_distribution_flow(web, engine, clock) -> None:
    client = TestClient(web)
    sign_up(client)
    recipient_id = add_recipient(client, engine)
    clock.advance(days=14)

    overview = client.get(f"/recipients/{recipient_id}")
    assert "$20.00" in overview.text

    response = client.post(
        f"/recipients/{recipient_id}/distribute",
        data={"give_amount": "2", "spend_amount": "3", "save_amount": "$5", "invest_amount": ""},
        follow_redirects=False,
    )
    assert response.status_code == 302
    assert "Distributed $10.00." in client.get(f"/recipients/{recipient_id}").text

    client.post(
        f"/recipients/{recipient_id}/distribute",
        data={"mode": "even", "split_total": "10.03"},
        follow_redirects=False,
    )
    with Session(engine) as session:
        distributions = session.exec(select(Distribution).order_by(Distribution.total_amount)).all()
    assert [item.total_amount for item in distributions] == [Decimal("10.00"), Decimal("10.03")]
    assert distributions[1].give_amount == Decimal("2.51")
    assert distributions[1].invest_amount == Decimal("2.50")

    save_page = client.get(f"/recipients/{recipient_id}?section=save")
    assert "Transaction history" in save_page.text
    assert "$7.51" in save_page.text


def test_invalid_distribution_reports_error(web, engine) -> None:
    client = TestClient(web)
    sign_up(client)
    recipient_id = add_recipient(client, engine)
    client.post(
        f"/recipients/{recipient_id}/distribute",
        data={"give_amount": "0", "spend_amount": "0", "save_amount": "0", "invest_amount": "0"},
        follow_redirects=False,
    )
    page = client.get(f"/recipients/{recipient_id}")
    assert "Distribution amount must be greater than zero." in page.text
    with Session(engine) as session:
        assert session.exec(select(Distribution)).all() == []


def test_cause_flow(web, engine) -> None:
    client = TestClient(web)
    sign_up(client)
    recipient_id = add_recipient(client, engine)
    client.post(
        f"/recipients/{recipient_id}/distribute",
        data={"give_amount": "40"},
        follow_redirects=False,
    )
    response = client.post(
        f"/recipients/{recipient_id}/causes",
        data={"name": "Animal shelter", "goal_amount": "30", "description": "Blankets", "due_date": "2024-05-01"},
        follow_redirects=False,
    )
    assert response.headers["location"] == f"/recipients/{recipient_id}?section=give"
    with Session(engine) as session:
        cause = session.exec(select(CharitableCause)).one()
    cause_id = cause.id

    client.post(f"/causes/{cause_id}/allocate", data={"amount": "35"}, follow_redirects=False)
    give_page = client.get(f"/recipients/{recipient_id}?section=give")
    assert "Allocation exceeds the goal amount" in give_page.text

    client.post(f"/causes/{cause_id}/allocate", data={"amount": "30"}, follow_redirects=False)
    assert "Allocated $30.00 to Animal shelter." in client.get(f"/recipients/{recipient_id}?section=give").text
    client.post(
        f"/causes/{cause_id}/update",
        data={"name": "Shelter", "description": "", "goal_amount": "25", "due_date": ""},
        follow_redirects=False,
    )
    assert "Goal cannot be lower than" in client.get(f"/recipients/{recipient_id}?section=give").text

    response = client.post(f"/causes/{cause_id}/complete", follow_redirects=False)
    assert response.headers["location"] == f"/recipients/{recipient_id}?section=give"
    give_page = client.get(f"/recipients/{recipient_id}?section=give")
    assert "Donated $30.00. Thank you!" in give_page.text
    assert "Donation to Animal shelter" in give_page.text

    client.post(f"/causes/{cause_id}/complete", follow_redirects=False)
    assert "already been completed" in client.get(f"/recipients/{recipient_id}?section=give").text


def test_settings_reset_and_archive(web, engine) -> None:
    client = TestClient(web)
    sign_up(client)
    recipient_id = add_recipient(client, engine)
    client.post(f"/recipients/{recipient_id}/distribute", data={"save_amount": "12"}, follow_redirects=False)

    client.post(f"/recipients/{recipient_id}/reset", follow_redirects=False)
    assert "Tick the confirmation box" in client.get(f"/recipients/{recipient_id}?section=settings").text
    settings = client.get(f"/recipients/{recipient_id}?section=settings").text
    assert "Sunset Dreams" in settings and "Forest Adventure" in settings
    assert "7 more themes are still locked." in settings

    client.post(f"/recipients/{recipient_id}/reset", data={"confirm": "yes"}, follow_redirects=False)
    with Session(engine) as session:
        assert session.exec(select(Distribution)).all() == []

    client.post(
        f"/recipients/{recipient_id}/profile",
        data={"name": "Ava Grace", "allowance_amount": "6", "avatar_url": ""},
        follow_redirects=False,
    )
    response = client.post(f"/recipients/{recipient_id}/archive", follow_redirects=False)
    assert response.headers["location"] == "/dashboard"
    dashboard = client.get("/dashboard").text
    assert "Archived Ava Grace." in dashboard
    assert f"/recipients/{recipient_id}?section=overview" not in dashboard
    assert "Ava Grace" in client.get("/dashboard?archived=1").text

    client.post(f"/recipients/{recipient_id}/restore", follow_redirects=False)
    assert f"/recipients/{recipient_id}?section=overview" in client.get("/dashboard").text


def test_managers_cannot_see_each_others_recipients(web, engine) -> None:
    owner = TestClient(web)
    sign_up(owner, "owner@example.com")
    recipient_id = add_recipient(owner, engine)

    stranger = TestClient(web)
    sign_up(stranger, "stranger@example.com")
    assert "Ava" not in stranger.get("/dashboard").text
    assert stranger.get(f"/recipients/{recipient_id}").status_code == 404

    stranger.post(f"/recipients/{recipient_id}/distribute", data={"give_amount": "5"}, follow_redirects=False)
    with Session(engine) as session:
        assert session.exec(select(Distribution)).all() == []


def test_oversized_amounts_get_a_notice_not_a_server_error(web, engine) -> None:
    client = TestClient(web)
    sign_up(client)
    response = client.post("/recipients", data={"name": "Ava", "allowance_amount": "1e30"}, follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/dashboard"
    assert "too large" in client.get("/dashboard").text
    with Session(engine) as session:
        assert session.exec(select(Recipient)).all() == []
