# lithomarket/services/licensing.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from lithomarket.database import db
from lithomarket.errors import AlreadyLicensed, NotFound
from lithomarket.models import ModelLicense, SimulationModel, User
from lithomarket.models_transaction import TransactionType
from lithomarket.services.ledger import currency, mock_tx_hash, record_transaction
from lithomarket.services.pricing import format_amount

log = logging.getLogger(__name__)


def parse_model_id(model_id: Any) -> int:
    try:
        return int(str(model_id).strip())
    except (TypeError, ValueError):
        raise NotFound("Model", model_id) from None


def get_model(model_id: Any) -> SimulationModel:
    model = db.session.get(SimulationModel, parse_model_id(model_id))
    if model is None:
        raise NotFound("Model", model_id)
    return model


def has_license(user_id: int, model_id: int) -> bool:
    return (
        db.session.query(ModelLicense.id)
        .filter(ModelLicense.user_id == user_id, ModelLicense.model_id == model_id)
        .first()
        is not None
    )


def authorize(user_id: int, model_id: Any) -> bool:
    """
    ¿Puede el usuario enviar jobs contra este modelo?
      - modelo inexistente => NotFound
      - precio == 0        => sí (licencia implícita para todos)
      - si no              => solo con licencia explícita
    Sin efectos secundarios.
    """
    model = get_model(model_id)

    if model.price == 0:
        return True

    return has_license(user_id, model.id)


def purchase(model_id: Any, user_id: int) -> Dict[str, Any]:
    """
    Compra una licencia: crea ModelLicense + transacción 'model_purchase'
    en una sola unidad de trabajo. Rechaza duplicados sin crear filas.
    """
    user: Optional[User] = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User", user_id)

    model = get_model(model_id)

    if has_license(user.id, model.id):
        raise AlreadyLicensed(user.id, model.id)

    tx_hash = mock_tx_hash()
    try:
        lic = ModelLicense(
            user_id=user.id,
            model_id=model.id,
            wallet_address=user.wallet_address,
            transaction_hash=tx_hash,
        )
        db.session.add(lic)
        record_transaction(
            user_id=user.id,
            tx_type=TransactionType.model_purchase,
            amount=model.price,
            amount_in_wei=model.price_in_wei,
            tx_hash=tx_hash,
            from_address=user.wallet_address,
            to_address=model.author_address,
            model_id=model.id,
            meta={"modelName": model.name},
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        log.exception("purchase failed user=%s model=%s", user.id, model.id)
        raise

    log.info("license %s: user=%s model=%s", lic.id, user.id, model.id)
    return {
        "success": True,
        "licenseId": lic.id,
        "modelId": model.id,
        "modelName": model.name,
        "price": format_amount(model.price, currency()),
        "transactionHash": tx_hash,
    }
