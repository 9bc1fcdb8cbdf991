# lithomarket/services/google_oauth.py
from __future__ import annotations

import logging
import secrets
from typing import Any, Dict

import httpx
from flask import current_app

from lithomarket.database import db
from lithomarket.models import User, utcnow

log = logging.getLogger(__name__)

SCOPES = "openid email profile"


class GoogleOAuthError(RuntimeError):
    pass


class GoogleOAuthClient:
    """
    Flujo authorization-code de Google (OAuth2 / OpenID Connect).
    Usa configuración desde current_app.config.
    """

    def __init__(self) -> None:
        cfg = current_app.config
        self.client_id: str = cfg.get("GOOGLE_CLIENT_ID") or ""
        self.client_secret: str = cfg.get("GOOGLE_CLIENT_SECRET") or ""
        self.auth_url: str = cfg["GOOGLE_AUTH_URL"]
        self.token_url: str = cfg["GOOGLE_TOKEN_URL"]
        self.userinfo_url: str = cfg["GOOGLE_USERINFO_URL"]
        self.timeout: float = cfg.get("OAUTH_HTTP_TIMEOUT", 10)

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def authorization_url(self, redirect_uri: str, state: str) -> str:
        url = httpx.URL(self.auth_url, params={
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": SCOPES,
            "state": state,
            "prompt": "select_account",
        })
        return str(url)

    # ───────────────────────────────
    # TOKEN
    # ───────────────────────────────
    def exchange_code(self, code: str, redirect_uri: str) -> str:
        with httpx.Client(timeout=self.timeout) as client:
            resp = client.post(
                self.token_url,
                data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": redirect_uri,
                    "grant_type": "authorization_code",
                },
                headers={"Accept": "application/json"},
            )

        if resp.status_code >= 400:
            raise GoogleOAuthError(f"Error obteniendo token Google: {resp.status_code} {resp.text}")

        token = resp.json().get("access_token")
        if not token:
            raise GoogleOAuthError("No se recibió access_token desde Google")
        return token

    # ───────────────────────────────
    # PERFIL
    # ───────────────────────────────
    def fetch_profile(self, access_token: str) -> Dict[str, Any]:
        with httpx.Client(timeout=self.timeout) as client:
            resp = client.get(
                self.userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )

        if resp.status_code >= 400:
            raise GoogleOAuthError(f"Error obteniendo perfil Google: {resp.status_code} {resp.text}")
        return resp.json()


def _free_username(google_id: str) -> str:
    username = f"user_{google_id[:8]}"
    if db.session.query(User.id).filter(User.username == username).first() is None:
        return username
    return f"{username}_{secrets.token_hex(2)}"


def sign_in_google_user(profile: Dict[str, Any]) -> User:
    """
    Crea o vincula el usuario del perfil de Google.
    Busca por google_id y luego por email; actualiza nombre, avatar y último login.
    """
    google_id = str(profile.get("sub") or profile.get("id") or "").strip()
    email = (profile.get("email") or "").strip().lower()
    if not google_id or not email:
        raise GoogleOAuthError("Perfil de Google sin id o email")

    user = db.session.query(User).filter(User.google_id == google_id).first()
    if user is None:
        user = db.session.query(User).filter(User.email == email).first()

    if user is None:
        user = User(username=_free_username(google_id), email=email, google_id=google_id)
        db.session.add(user)
        log.info("google user created: %s", email)
    elif not user.google_id:
        user.google_id = google_id
        log.info("google account linked to user %s", user.id)

    user.name = profile.get("name") or user.name
    user.avatar = profile.get("picture") or user.avatar
    user.last_login = utcnow()
    db.session.commit()
    return user
