from conftest import register_client, register_practitioner


def _send(client, recipient_id, body="Hello", subject="Session"):
    return client.post("/messages", json={"recipient_id": recipient_id, "subject": subject, "body": body})


def test_client_and_practitioner_exchange_messages(api_client, practitioner, linked_client):
    client, account = linked_client

    sent = _send(client, practitioner["id"], body="Can we move Thursday?")
    assert sent.status_code == 201, sent.text
    message = sent.json()
    assert message["read_at"] is None

    assert api_client.get("/messages/unread-count").json() == {"count": 1}
    inbox = api_client.get("/messages", params={"box": "inbox"}).json()
    assert [item["id"] for item in inbox] == [message["id"]]
    assert client.get("/messages", params={"box": "inbox"}).json() == []
    assert [item["id"] for item in client.get("/messages", params={"box": "sent"}).json()] == [message["id"]]

    not_recipient = client.post(f"/messages/{message['id']}/read")
    assert not_recipient.status_code == 403, not_recipient.text

    first_read = api_client.post(f"/messages/{message['id']}/read")
    assert first_read.status_code == 200, first_read.text
    read_at = first_read.json()["read_at"]
    assert read_at is not None
    again = api_client.post(f"/messages/{message['id']}/read")
    assert again.json()["read_at"] == read_at
    assert api_client.get("/messages/unread-count").json() == {"count": 0}

    reply = api_client.post(
        "/messages",
        json={"recipient_id": account["id"], "body": "Yes, Friday works", "parent_message_id": message["id"]},
    )
    assert reply.status_code == 201, reply.text
    assert reply.json()["subject"] == "Re: Session"


def test_message_validation(api_client, practitioner, linked_client):
    client, _account = linked_client

    to_self = _send(api_client, practitioner["id"])
    assert to_self.status_code == 400, to_self.text

    blank = _send(client, practitioner["id"], body="   ")
    assert blank.status_code == 400, blank.text
    assert blank.json()["field"] == "body"

    missing = _send(client, 9999)
    assert missing.status_code == 404, missing.text


def test_messaging_is_limited_to_linked_accounts(api_client, practitioner, linked_client, new_client):
    client, account = linked_client
    other = new_client()
    other_practitioner = register_practitioner(other, username="drgarcia")

    assert _send(client, other_practitioner["id"]).status_code == 403
    assert _send(other, account["id"]).status_code == 403

    stranger = new_client()
    stranger_account = register_client(stranger, other_practitioner["invite_code"], username="pedro")
    assert _send(api_client, stranger_account["id"]).status_code == 403


def test_soft_delete_scenario(api_client, practitioner, linked_client, new_client):
    client, _account = linked_client
    message = _send(client, practitioner["id"]).json()

    third = new_client()
    register_practitioner(third, username="drgarcia")
    forbidden = third.delete(f"/messages/{message['id']}")
    assert forbidden.status_code == 403, forbidden.text

    deleted = api_client.delete(f"/messages/{message['id']}")
    assert deleted.status_code == 200, deleted.text
    assert deleted.json()["is_deleted_by_recipient"] is True
    assert deleted.json()["is_deleted_by_sender"] is False

    assert api_client.get("/messages").json() == []
    with_deleted = api_client.get("/messages", params={"include_deleted": True}).json()
    assert [item["id"] for item in with_deleted] == [message["id"]]
    assert [item["id"] for item in client.get("/messages").json()] == [message["id"]]

    assert api_client.delete("/messages/9999").status_code == 404
