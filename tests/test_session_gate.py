import pytest

from app.core.security import create_access_token
from tests.conftest import make_user


@pytest.mark.parametrize("path", ["/dashboard", "/dashboard/webinars", "/admin", "/admin/coupons"])
def test_protected_pages_redirect_to_login(client, path):
    res = client.get(path, follow_redirects=False)
    assert res.status_code == 303
    assert res.headers["location"] == "/login"


@pytest.mark.parametrize("path", ["/login", "/signup"])
def test_auth_pages_redirect_signed_in_users(client, path):
    user = make_user()
    client.cookies.set("access_token", create_access_token(user_id=user.id, role=user.role))
    res = client.get(path, follow_redirects=False)
    assert res.status_code == 303
    assert res.headers["location"] == "/dashboard"


def test_invalid_cookie_counts_as_signed_out(client):
    client.cookies.set("access_token", "not-a-jwt")
    res = client.get("/dashboard", follow_redirects=False)
    assert res.headers["location"] == "/login"


def test_api_routes_are_not_redirected(client):
    res = client.get("/api/me", follow_redirects=False)
    assert res.status_code == 401


def test_signed_in_dashboard_passes_through(client):
    user = make_user()
    client.cookies.set("access_token", create_access_token(user_id=user.id, role=user.role))
    # no page handler is mounted here, so it falls through to a 404
    res = client.get("/dashboard", follow_redirects=False)
    assert res.status_code == 404
