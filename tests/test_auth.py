from app.core.security import create_reset_token
from app.models.user import User
from tests.conftest import auth_headers, fetch, make_user, make_webinar


def signup(client, email="new@example.com", password="secret123"):
    return client.post(
        "/api/auth/signup",
        json={"email": email, "password": password, "full_name": "New User"},
    )


def test_signup_creates_user_and_sends_welcome(client, mailer):
    res = signup(client, email="New@Example.com")
    assert res.status_code == 201
    body = res.json()
    assert body["email"] == "new@example.com"
    assert body["role"] == "user"
    assert "password_hash" not in body
    assert [e.to for e in mailer.sent] == ["new@example.com"]


def test_duplicate_signup_is_rejected(client):
    signup(client)
    res = signup(client, email="NEW@example.com")
    assert res.status_code == 400
    assert res.json()["detail"] == "An account with this email already exists"


def test_login_sets_session_cookie(client):
    make_user("login@example.com", password="secret123")

    res = client.post("/api/auth/login", json={"email": "login@example.com", "password": "secret123"})
    assert res.status_code == 200
    assert res.json()["token_type"] == "bearer"
    assert "access_token" in res.cookies

    # the cookie alone authenticates API calls
    me = client.get("/api/me")
    assert me.status_code == 200
    assert me.json()["email"] == "login@example.com"


def test_login_with_wrong_password(client):
    make_user("login@example.com", password="secret123")
    res = client.post("/api/auth/login", json={"email": "login@example.com", "password": "nope"})
    assert res.status_code == 401
    assert res.json()["detail"] == "Invalid email or password"


def test_refresh_issues_new_tokens(client):
    make_user("login@example.com", password="secret123")
    tokens = client.post(
        "/api/auth/login", json={"email": "login@example.com", "password": "secret123"}
    ).json()

    res = client.post("/api/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert res.status_code == 200

    # an access token is not a refresh token
    res = client.post("/api/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert res.status_code == 401


def test_forgot_password_does_not_reveal_accounts(client, mailer):
    make_user("known@example.com")

    known = client.post("/api/auth/forgot-password", json={"email": "known@example.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert [e.to for e in mailer.sent] == ["known@example.com"]


def test_reset_token_works_once(client):
    user = make_user("reset@example.com", password="oldpass1")
    token = create_reset_token(user_id=user.id, password_hash=user.password_hash)

    res = client.post("/api/auth/reset-password", json={"token": token, "new_password": "newpass1"})
    assert res.status_code == 200
    assert fetch(User, user.id).password_hash != user.password_hash

    again = client.post("/api/auth/reset-password", json={"token": token, "new_password": "other11"})
    assert again.status_code == 400
    assert again.json()["detail"] == "Invalid or expired reset link"

    login = client.post("/api/auth/login", json={"email": "reset@example.com", "password": "newpass1"})
    assert login.status_code == 200


def test_profile_update(client):
    user = make_user()
    res = client.patch("/api/me", json={"phone": "9876543210"}, headers=auth_headers(user))
    assert res.status_code == 200
    assert res.json()["phone"] == "9876543210"
    assert res.json()["full_name"] == "Test User"


def test_my_webinars_lists_own_registrations(client):
    user = make_user()
    webinar = make_webinar(price="0.00")
    client.post(
        "/api/payment/create",
        json={"type": "webinar", "item_id": webinar.id},
        headers=auth_headers(user),
    )

    res = client.get("/api/me/webinars", headers=auth_headers(user))
    assert res.status_code == 200
    rows = res.json()
    assert len(rows) == 1
    assert rows[0]["webinar"]["slug"] == "intro-to-python"


def test_logout_clears_cookie(client):
    res = client.post("/api/auth/logout")
    assert res.status_code == 200
    assert "access_token" in res.headers.get("set-cookie", "")
