"""
Google sign-in: redirect, callback (token exchange mocked) and session merge.
"""

from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from lithomarket import create_app, db
from lithomarket.config import TestingConfig
from lithomarket.models import User

from conftest import login

PROFILE = {
    "sub": "108234567890123456789",
    "email": "Ada@Example.com",
    "name": "Ada Lovelace",
    "picture": "https://lh3.googleusercontent.com/ada.png",
}


def _response(status_code, payload):
    resp = MagicMock(status_code=status_code, text=str(payload))
    resp.json.return_value = payload
    return resp


@pytest.fixture
def google_http():
    """httpx.Client falso: POST => token, GET => perfil."""
    http = MagicMock()
    http.post.return_value = _response(200, {"access_token": "ya29.token", "token_type": "Bearer"})
    http.get.return_value = _response(200, dict(PROFILE))
    with patch("lithomarket.services.google_oauth.httpx.Client") as client_cls:
        client_cls.return_value.__enter__.return_value = http
        yield http


def _set_state(client, state="state-123"):
    with client.session_transaction() as sess:
        sess["google_oauth_state"] = state
    return state


def test_login_redirects_to_google(app, client):
    resp = client.get("/api/auth/google")
    assert resp.status_code == 302

    location = urlparse(resp.headers["Location"])
    assert f"{location.scheme}://{location.netloc}{location.path}" == app.config["GOOGLE_AUTH_URL"]
    query = parse_qs(location.query)
    assert query["client_id"] == ["test-client-id"]
    assert query["redirect_uri"] == [app.config["GOOGLE_REDIRECT_URI"]]
    assert query["response_type"] == ["code"]
    assert "email" in query["scope"][0]

    with client.session_transaction() as sess:
        assert query["state"] == [sess["google_oauth_state"]]


def test_login_without_credentials_is_501():
    class NoGoogleConfig(TestingConfig):
        GOOGLE_CLIENT_ID = ""

    app = create_app(NoGoogleConfig)
    with app.app_context():
        assert app.test_client().get("/api/auth/google").status_code == 501
        db.session.remove()
        db.drop_all()


def test_callback_creates_user_and_signs_in(app, client, google_http):
    state = _set_state(client)
    resp = client.get(f"/api/auth/google/callback?code=auth-code&state={state}")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/")

    sent = google_http.post.call_args.kwargs["data"]
    assert sent["code"] == "auth-code"
    assert sent["grant_type"] == "authorization_code"
    assert sent["redirect_uri"] == app.config["GOOGLE_REDIRECT_URI"]
    assert google_http.get.call_args.kwargs["headers"]["Authorization"] == "Bearer ya29.token"

    user = db.session.query(User).one()
    assert user.google_id == PROFILE["sub"]
    assert user.email == "ada@example.com"
    assert user.username == "user_10823456"
    assert user.last_login is not None

    me = client.get("/api/auth/current-user").get_json()
    assert me["isAuthenticated"] is True
    assert me["walletAddress"] is None
    assert me["name"] == "Ada Lovelace"
    assert me["email"] == "ada@example.com"
    assert me["avatar"] == PROFILE["picture"]


def test_callback_links_existing_user_by_email(client, buyer, google_http):
    google_http.get.return_value = _response(200, {**PROFILE, "email": "buyer@example.com"})
    state = _set_state(client)
    client.get(f"/api/auth/google/callback?code=auth-code&state={state}")

    assert db.session.query(User).count() == 1
    db.session.refresh(buyer)
    assert buyer.google_id == PROFILE["sub"]
    assert buyer.avatar == PROFILE["picture"]


def test_wallet_and_google_merge_in_current_user(client, buyer, google_http):
    google_http.get.return_value = _response(200, {**PROFILE, "email": "buyer@example.com"})
    state = _set_state(client)
    client.get(f"/api/auth/google/callback?code=auth-code&state={state}")
    login(client, buyer)

    me = client.get("/api/auth/current-user").get_json()
    assert me["walletAddress"] == buyer.wallet_address
    assert me["id"] == buyer.id
    assert me["name"] == "Ada Lovelace"


def test_state_mismatch_is_rejected(app, client, google_http):
    _set_state(client, "expected")
    resp = client.get("/api/auth/google/callback?code=auth-code&state=forged")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith(app.config["GOOGLE_FAILURE_REDIRECT"])
    google_http.post.assert_not_called()
    assert db.session.query(User).count() == 0


def test_denied_consent_redirects_to_failure(app, client, google_http):
    state = _set_state(client)
    resp = client.get(f"/api/auth/google/callback?error=access_denied&state={state}")
    assert resp.headers["Location"].endswith(app.config["GOOGLE_FAILURE_REDIRECT"])
    google_http.post.assert_not_called()


def test_failed_token_exchange_does_not_sign_in(app, client, google_http):
    google_http.post.return_value = _response(400, {"error": "invalid_grant"})
    state = _set_state(client)
    resp = client.get(f"/api/auth/google/callback?code=bad-code&state={state}")

    assert resp.headers["Location"].endswith(app.config["GOOGLE_FAILURE_REDIRECT"])
    assert db.session.query(User).count() == 0
    with client.session_transaction() as sess:
        assert "user_id" not in sess
    assert client.get("/api/auth/current-user").status_code == 401


def test_logout_clears_google_login(client, google_http):
    state = _set_state(client)
    client.get(f"/api/auth/google/callback?code=auth-code&state={state}")
    assert client.get("/api/auth/current-user").status_code == 200

    client.post("/api/auth/logout")
    assert client.get("/api/auth/current-user").status_code == 401


def test_google_user_without_wallet_cannot_submit_jobs(client, google_http):
    state = _set_state(client)
    client.get(f"/api/auth/google/callback?code=auth-code&state={state}")
    assert client.get("/api/jobs").status_code == 401
