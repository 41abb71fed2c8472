from app.core.settings import settings


def test_contact_request_is_public(api_client):
    res = api_client.post(
        "/contact-requests",
        json={"name": "Laura Vega", "email": "laura@example.com", "specialty": "Psychotherapy", "source": "landing"},
    )
    assert res.status_code == 201, res.text
    assert res.json()["status"] == "pending"


def test_contact_request_validation(api_client):
    res = api_client.post("/contact-requests", json={"name": "Laura Vega", "email": "nope", "specialty": "Psychotherapy"})
    assert res.status_code == 400, res.text
    assert res.json()["field"] == "email"


def test_contact_requests_are_rate_limited(api_client):
    payload = {"name": "Laura Vega", "email": "laura@example.com", "specialty": "Psychotherapy"}
    statuses = [
        api_client.post("/contact-requests", json=payload).status_code
        for _ in range(settings.contact_requests_per_minute + 1)
    ]
    assert statuses[-1] == 429
    assert set(statuses[:-1]) == {201}


def test_message_templates(api_client, practitioner, linked_client):
    client, _account = linked_client
    created = api_client.post(
        "/message-templates",
        json={"kind": "appointment_reminder", "title": "Reminder", "content": "See you tomorrow at {time}."},
    )
    assert created.status_code == 201, created.text
    assert created.json()["language"] == "es"

    listed = api_client.get("/message-templates", params={"kind": "appointment_reminder"})
    assert [item["id"] for item in listed.json()] == [created.json()["id"]]
    assert api_client.get("/message-templates", params={"kind": "welcome"}).json() == []
    assert client.get("/message-templates").status_code == 403

    bad_kind = api_client.post("/message-templates", json={"kind": "spam", "title": "Spam", "content": "x"})
    assert bad_kind.status_code == 400, bad_kind.text
