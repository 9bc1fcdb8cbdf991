# lithomarket/routes/auth.py
from __future__ import annotations

import secrets

from flask import Blueprint, current_app, jsonify, redirect, request, session, url_for

from lithomarket.services.google_oauth import GoogleOAuthClient, GoogleOAuthError, sign_in_google_user
from lithomarket.services.wallet import (
    get_or_create_user,
    is_valid_address,
    issue_challenge,
    normalize_address,
    verify_wallet_signature,
)
from lithomarket.utils_auth import SESSION_USER_KEY, SESSION_WALLET_KEY, get_request_user, get_session_wallet

bp = Blueprint("auth", __name__, url_prefix="/api/auth")

OAUTH_STATE_KEY = "google_oauth_state"


def _unverified_enabled() -> bool:
    return bool(current_app.config.get("WALLET_AUTH_UNVERIFIED", False))


# ---------------------------------------------------------
# Wallet
# ---------------------------------------------------------
@bp.get("/wallet/challenge")
def wallet_challenge():
    address = (request.args.get("address") or "").strip()
    if not is_valid_address(address):
        return jsonify({"message": "Invalid wallet address"}), 400
    return jsonify({"address": address, "message": issue_challenge(address)})


@bp.post("/wallet/connect")
def wallet_connect():
    if not _unverified_enabled():
        # sin verificación real de firmas no se abre sesión por wallet
        return jsonify({"message": "Wallet sign-in is disabled"}), 501

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    address = (data.get("address") or "").strip()
    signature = data.get("signature") or ""
    message = data.get("message") or ""

    if not address or not signature or not message:
        return jsonify({"message": "Missing required parameters"}), 400

    if not verify_wallet_signature(address, signature, message):
        return jsonify({"message": "Invalid signature"}), 401

    address = normalize_address(address)
    session[SESSION_WALLET_KEY] = address
    get_or_create_user(address)
    current_app.logger.info("WALLET_CONNECT address=%s", address)

    return jsonify({"success": True, "address": address})


@bp.post("/wallet/disconnect")
def wallet_disconnect():
    session.pop(SESSION_WALLET_KEY, None)
    return jsonify({"success": True})


# ---------------------------------------------------------
# Google
# ---------------------------------------------------------
def _google_redirect_uri() -> str:
    return current_app.config.get("GOOGLE_REDIRECT_URI") or url_for("auth.google_callback", _external=True)


def _google_failure():
    return redirect(current_app.config.get("GOOGLE_FAILURE_REDIRECT", "/login?error=google-auth"))


@bp.get("/google")
def google_login():
    client = GoogleOAuthClient()
    if not client.configured:
        return jsonify({"message": "Google sign-in is not configured"}), 501

    state = secrets.token_urlsafe(16)
    session[OAUTH_STATE_KEY] = state
    return redirect(client.authorization_url(_google_redirect_uri(), state))


@bp.get("/google/callback")
def google_callback():
    expected = session.pop(OAUTH_STATE_KEY, None)
    code = request.args.get("code")

    if request.args.get("error") or not code:
        current_app.logger.info("GOOGLE_CALLBACK denied: %s", request.args.get("error"))
        return _google_failure()
    if not expected or request.args.get("state") != expected:
        current_app.logger.warning("GOOGLE_CALLBACK state mismatch")
        return _google_failure()

    try:
        client = GoogleOAuthClient()
        token = client.exchange_code(code, _google_redirect_uri())
        user = sign_in_google_user(client.fetch_profile(token))
    except GoogleOAuthError as e:
        current_app.logger.warning("GOOGLE_CALLBACK failed: %s", e)
        return _google_failure()

    session[SESSION_USER_KEY] = user.id
    current_app.logger.info("GOOGLE_LOGIN user=%s", user.id)
    return redirect("/")


# ---------------------------------------------------------
# Sesión
# ---------------------------------------------------------
@bp.get("/current-user")
def current_user():
    wallet = get_session_wallet()
    user = get_request_user()
    if not wallet and user is None:
        return jsonify({"isAuthenticated": False}), 401

    out = {"isAuthenticated": True, "walletAddress": wallet}
    if user:
        out.update({
            "id": user.id,
            "name": user.name or user.username,
            "email": user.email,
            "avatar": user.avatar,
        })
    return jsonify(out)


@bp.post("/logout")
def logout():
    # borra wallet y login de Google
    session.clear()
    return jsonify({"success": True})
