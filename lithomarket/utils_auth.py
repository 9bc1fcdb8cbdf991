# lithomarket/utils_auth.py
from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import g, jsonify, session

from lithomarket.database import db
from lithomarket.models import User
from lithomarket.services.wallet import get_user_by_wallet, normalize_address

SESSION_WALLET_KEY = "wallet_address"
# usuario que entró con Google
SESSION_USER_KEY = "user_id"


def get_session_wallet() -> Optional[str]:
    raw = session.get(SESSION_WALLET_KEY)
    s = str(raw).strip() if raw else ""
    return normalize_address(s) if s else None


def _session_user_id() -> Optional[int]:
    try:
        return int(session.get(SESSION_USER_KEY) or 0) or None
    except (TypeError, ValueError):
        return None


def get_request_user() -> Optional[User]:
    """
    Usuario de la sesión actual o None: primero por wallet, luego por login de Google.
    Se cachea en g (por wallet/uid) para no repetir la consulta.
    """
    wallet = get_session_wallet()
    uid = _session_user_id()
    key = (wallet, uid)
    cached = g.get("request_user")
    if cached is None or cached[0] != key:
        if wallet:
            user = get_user_by_wallet(wallet)
        elif uid:
            user = db.session.get(User, uid)
        else:
            user = None
        cached = g.request_user = (key, user)
    return cached[1]


def get_request_user_id() -> Optional[int]:
    user = get_request_user()
    return user.id if user else None


def require_wallet(view):
    """401 si no hay wallet en sesión o si no corresponde a ningún usuario."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if not get_session_wallet():
            return jsonify({"message": "Wallet authentication required"}), 401
        if get_request_user() is None:
            return jsonify({"message": "User not found"}), 401
        return view(*args, **kwargs)

    return wrapper
