# lithomarket/services/wallet.py
"""
Sesión por wallet.

ADVERTENCIA: la firma de la wallet NO se verifica criptográficamente.
Solo se comprueba que el mensaje firmado contenga un challenge emitido por
este servidor (token itsdangerous con caducidad) para esa misma dirección.
Cualquiera que conozca una dirección puede pedir un challenge y "conectarse"
como ella. Por eso el flujo entero está detrás de WALLET_AUTH_UNVERIFIED,
apagado por defecto en ProductionConfig.
"""
from __future__ import annotations

import logging
import re
import secrets
from typing import Optional

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy import func

from lithomarket.database import db
from lithomarket.models import User

log = logging.getLogger(__name__)

_CHALLENGE_RE = re.compile(r"Challenge:\s*(\S+)")
_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(
        secret_key=current_app.config["SECRET_KEY"],
        salt="lithomarket-wallet-challenge",
    )


def is_valid_address(address: Optional[str]) -> bool:
    return bool(address and _ADDRESS_RE.match(address))


def issue_challenge(address: str) -> str:
    """Mensaje que el cliente debe firmar con su wallet."""
    token = _serializer().dumps({"address": address.lower(), "nonce": secrets.token_hex(8)})
    return f"Sign in to LithoMarket\n\nWallet: {address}\nChallenge: {token}"


def verify_wallet_signature(address: str, signature: str, message: str) -> bool:
    """
    Placeholder inseguro: valida el challenge del mensaje pero NO la firma.
    """
    if not signature:
        return False

    m = _CHALLENGE_RE.search(message or "")
    if not m:
        return False

    max_age = int(current_app.config.get("WALLET_CHALLENGE_MAX_AGE", 300))
    try:
        payload = _serializer().loads(m.group(1), max_age=max_age)
    except SignatureExpired:
        log.info("wallet challenge expired for %s", address)
        return False
    except BadSignature:
        log.info("wallet challenge rejected for %s", address)
        return False

    if str(payload.get("address", "")).lower() != address.lower():
        return False

    log.warning("wallet signature NOT verified for %s (insecure placeholder)", address)
    return True


def normalize_address(address: str) -> str:
    """Las direcciones se guardan y comparan en minúsculas (con o sin checksum EIP-55)."""
    return address.strip().lower()


def get_user_by_wallet(address: Optional[str]) -> Optional[User]:
    if not address:
        return None
    # lower() en la columna: filas antiguas pueden venir con checksum
    return (
        db.session.query(User)
        .filter(func.lower(User.wallet_address) == normalize_address(address))
        .first()
    )


def get_or_create_user(address: str) -> User:
    user = get_user_by_wallet(address)
    if user:
        return user

    user = User(username=f"user_{secrets.token_hex(4)}", wallet_address=normalize_address(address))
    db.session.add(user)
    db.session.commit()
    log.info("user created for wallet %s: %s", address, user.username)
    return user
