from app.core.settings import settings
from conftest import DEFAULT_PASSWORD, register_client, register_practitioner


def test_register_practitioner_logs_in(api_client):
    account = register_practitioner(api_client)
    assert account["kind"] == "practitioner"
    assert account["invite_code"] and account["invite_code"].isdigit()
    assert len(account["invite_code"]) == settings.invite_code_length
    assert "hashed_password" not in account
    assert "password" not in account

    me = api_client.get("/session/me")
    assert me.status_code == 200, me.text
    assert me.json()["id"] == account["id"]


def test_session_cookie_attributes(api_client):
    res = api_client.post(
        "/register",
        json={
            "username": "drcookie",
            "password": DEFAULT_PASSWORD,
            "email": "drcookie@example.com",
            "full_name": "Dr Cookie",
            "kind": "practitioner",
            "specialty": "Family therapy",
        },
    )
    assert res.status_code == 201, res.text
    cookie = res.headers["set-cookie"]
    assert cookie.startswith(f"{settings.session_cookie_name}=")
    assert "HttpOnly" in cookie
    assert "samesite=lax" in cookie.lower()
    assert f"Max-Age={30 * 24 * 60 * 60}" in cookie


def test_practitioner_requires_specialty(api_client):
    res = api_client.post(
        "/register",
        json={
            "username": "nospecialty",
            "password": DEFAULT_PASSWORD,
            "email": "nospecialty@example.com",
            "full_name": "No Specialty",
            "kind": "practitioner",
        },
    )
    assert res.status_code == 400, res.text
    assert res.json()["field"] == "specialty"


def test_duplicate_username_and_email(api_client, new_client):
    register_practitioner(api_client)
    other = new_client()

    dup_user = other.post(
        "/register",
        json={
            "username": "drlopez",
            "password": DEFAULT_PASSWORD,
            "email": "someone.else@example.com",
            "full_name": "Someone Else",
            "kind": "practitioner",
            "specialty": "Psychiatry",
        },
    )
    assert dup_user.status_code == 409, dup_user.text
    assert dup_user.json()["message"] == "Username already exists"

    dup_email = other.post(
        "/register",
        json={
            "username": "someoneelse",
            "password": DEFAULT_PASSWORD,
            "email": "DrLopez@example.com",
            "full_name": "Someone Else",
            "kind": "practitioner",
            "specialty": "Psychiatry",
        },
    )
    assert dup_email.status_code == 409, dup_email.text
    assert dup_email.json()["message"] == "Email already registered"


def test_registration_validation(api_client):
    short = api_client.post(
        "/register",
        json={
            "username": "shorty",
            "password": "short",
            "email": "shorty@example.com",
            "full_name": "Shorty",
            "kind": "practitioner",
            "specialty": "Psychiatry",
        },
    )
    assert short.status_code == 400, short.text
    assert short.json()["field"] == "password"

    bad_email = api_client.post(
        "/register",
        json={
            "username": "bademail",
            "password": DEFAULT_PASSWORD,
            "email": "not-an-email",
            "full_name": "Bad Email",
            "kind": "practitioner",
            "specialty": "Psychiatry",
        },
    )
    assert bad_email.status_code == 400, bad_email.text
    assert bad_email.json()["field"] == "email"

    missing = api_client.post("/register", json={"username": "missing"})
    assert missing.status_code == 400, missing.text
    assert "message" in missing.json()


def test_client_registration_links_practitioner(api_client, practitioner, new_client):
    client = new_client()
    account = register_client(client, practitioner["invite_code"])
    assert account["kind"] == "client"
    assert account["linked_practitioner_id"] == practitioner["id"]
    assert account["invite_code"] is None

    patients = api_client.get("/patients").json()
    assert [patient["client_account_id"] for patient in patients] == [account["id"]]
    assert patients[0]["name"] == account["full_name"]

    mine = client.get("/my-practitioner")
    assert mine.status_code == 200, mine.text
    assert mine.json()["id"] == practitioner["id"]
    assert "invite_code" not in mine.json()


def test_client_registration_requires_valid_code(new_client, practitioner):
    client = new_client()
    base = {
        "username": "lost",
        "password": DEFAULT_PASSWORD,
        "email": "lost@example.com",
        "full_name": "Lost Client",
        "kind": "client",
    }
    missing = client.post("/register", json=base)
    assert missing.status_code == 400, missing.text
    assert missing.json()["field"] == "invite_code"

    wrong_code = "1" * len(practitioner["invite_code"])
    if wrong_code == practitioner["invite_code"]:
        wrong_code = "2" * len(practitioner["invite_code"])
    wrong = client.post("/register", json={**base, "invite_code": wrong_code})
    assert wrong.status_code == 400, wrong.text
    assert wrong.json()["field"] == "invite_code"


def test_login_logout_cycle(api_client, new_client):
    register_practitioner(api_client)
    client = new_client()

    bad = client.post("/login", json={"username": "drlopez", "password": "wrong-password"})
    assert bad.status_code == 401, bad.text
    assert bad.json() == {"message": "Invalid credentials"}

    unknown = client.post("/login", json={"username": "ghost", "password": "wrong-password"})
    assert unknown.status_code == 401, unknown.text
    assert unknown.json() == bad.json()

    ok = client.post("/login", json={"username": "drlopez", "password": DEFAULT_PASSWORD})
    assert ok.status_code == 200, ok.text
    assert ok.json()["username"] == "drlopez"
    token = client.cookies.get(settings.session_cookie_name)
    assert token

    assert client.get("/session/me").status_code == 200
    out = client.post("/logout")
    assert out.status_code == 200, out.text
    assert client.get("/session/me").status_code == 401

    replay = new_client()
    replay.cookies.set(settings.session_cookie_name, token)
    assert replay.get("/session/me").status_code == 401


def test_login_is_rate_limited(api_client):
    register_practitioner(api_client)
    statuses = [
        api_client.post("/login", json={"username": "drlopez", "password": "wrong-password"}).status_code
        for _ in range(settings.login_attempts_per_minute + 1)
    ]
    assert statuses[:-1] == [401] * settings.login_attempts_per_minute
    assert statuses[-1] == 429


def test_unknown_route_uses_error_shape(api_client):
    res = api_client.get("/does-not-exist")
    assert res.status_code == 404
    assert res.json() == {"message": "Not Found"}


def test_health(api_client):
    res = api_client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}
