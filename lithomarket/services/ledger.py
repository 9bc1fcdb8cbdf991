# lithomarket/services/ledger.py
from __future__ import annotations

import logging
import secrets
from typing import Any, Dict, List, Optional

from flask import current_app

from lithomarket.database import db
from lithomarket.models import SimulationModel
from lithomarket.models_job import Job
from lithomarket.models_transaction import Transaction
from lithomarket.services.pricing import format_amount, to_wei

log = logging.getLogger(__name__)

RECENT_LIMIT = 10


def mock_tx_hash() -> str:
    """Hash de transacción simulado: 0x + 64 hex aleatorios."""
    return "0x" + secrets.token_hex(32)


def currency() -> str:
    return current_app.config.get("CURRENCY_SYMBOL", "MATIC")


def record_transaction(
    *,
    user_id: Optional[int],
    tx_type: str,
    amount,
    tx_hash: str,
    from_address: Optional[str] = None,
    to_address: Optional[str] = None,
    job: Optional[Job] = None,
    model_id: Optional[int] = None,
    amount_in_wei: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
) -> Transaction:
    """
    Agrega la transacción a la sesión SIN commit: el llamador confirma
    junto con el job/licencia asociado.
    """
    tx = Transaction(
        user_id=user_id,
        type=tx_type,
        amount=amount,
        amount_in_wei=amount_in_wei or to_wei(amount),
        tx_hash=tx_hash,
        from_address=from_address,
        to_address=to_address,
        job=job,
        model_id=model_id,
        meta=meta or {},
    )
    db.session.add(tx)
    log.info("ledger: %s amount=%s user=%s tx=%s", tx_type, amount, user_id, tx_hash[:12])
    return tx


def recent_transactions(user_id: int, limit: int = RECENT_LIMIT) -> List[Dict[str, Any]]:
    rows = (
        db.session.query(Transaction, Job.job_id, SimulationModel.name)
        .outerjoin(Job, Transaction.job_id == Job.id)
        .outerjoin(SimulationModel, Transaction.model_id == SimulationModel.id)
        .filter(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
        .all()
    )

    symbol = currency()
    items = []
    for tx, job_code, model_name in rows:
        meta = dict(tx.meta or {})
        meta["jobId"] = job_code
        meta["modelName"] = model_name
        items.append({
            "id": str(tx.id),
            "type": tx.type,
            "amount": format_amount(tx.amount, symbol),
            "timestamp": tx.created_at.isoformat() if tx.created_at else None,
            "txHash": tx.tx_hash,
            "status": tx.status,
            "metadata": meta,
        })
    return items
