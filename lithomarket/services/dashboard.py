# lithomarket/services/dashboard.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from flask import current_app

from lithomarket.database import db
from lithomarket.models import Documentation, ModelLicense
from lithomarket.models_job import Job, JobStatus
from lithomarket.services.ledger import currency
from lithomarket.services.pricing import format_amount

log = logging.getLogger(__name__)

CATEGORY_TITLES = {
    "getting-started": "Getting Started",
    "api-reference": "API Reference",
    "model-guidelines": "Model Guidelines",
    "tutorials": "Tutorials",
}


def dashboard(user_id: Optional[int] = None) -> Dict[str, Any]:
    symbol = currency()
    stats = {
        "activeJobs": 0,
        "completedJobs": 0,
        "ownedModels": 0,
        "balance": format_amount(0, symbol),
    }
    if not user_id:
        return {"stats": stats}

    stats["activeJobs"] = (
        db.session.query(Job)
        .filter(Job.user_id == user_id, Job.status.in_(JobStatus.ACTIVE))
        .count()
    )
    stats["completedJobs"] = (
        db.session.query(Job)
        .filter(Job.user_id == user_id, Job.status == JobStatus.completed)
        .count()
    )
    stats["ownedModels"] = (
        db.session.query(ModelLicense).filter(ModelLicense.user_id == user_id).count()
    )
    # saldo simulado: no se consulta ninguna cadena
    stats["balance"] = format_amount(current_app.config.get("MOCK_WALLET_BALANCE", "0"), symbol)

    log.debug("dashboard uid=%s stats=%s", user_id, stats)
    return {"stats": stats}


def category_title(category: str) -> str:
    if category in CATEGORY_TITLES:
        return CATEGORY_TITLES[category]
    return " ".join(w[:1].upper() + w[1:] for w in category.split("-"))


def documentation() -> Dict[str, List[Dict[str, Any]]]:
    docs = (
        db.session.query(Documentation)
        .order_by(Documentation.category, Documentation.sort_order, Documentation.id)
        .all()
    )

    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for doc in docs:
        grouped.setdefault(doc.category, []).append(doc.to_dict())

    return {
        "categories": [
            {"id": cat, "title": category_title(cat), "items": items}
            for cat, items in grouped.items()
        ]
    }
