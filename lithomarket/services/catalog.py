# lithomarket/services/catalog.py
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Set

from sqlalchemy import or_

from lithomarket.database import db
from lithomarket.models import ModelLicense, SimulationModel, User
from lithomarket.services.ledger import currency
from lithomarket.services.pricing import format_amount, to_decimal

FEATURED_MIN_RATING = 4
FEATURED_LIMIT = 3


def licensed_model_ids(user_id: Optional[int]) -> Set[int]:
    if not user_id:
        return set()
    rows = db.session.query(ModelLicense.model_id).filter(ModelLicense.user_id == user_id).all()
    return {r[0] for r in rows}


def _rating(value) -> Optional[float]:
    return float(value) if value is not None else None


def parse_price_range(raw: Optional[str]) -> Optional[List[float]]:
    """'5,20' -> [5.0, 20.0] (centésimas de la moneda). Formato inválido => None."""
    if not raw:
        return None
    try:
        parts = [float(p) for p in raw.split(",")]
    except ValueError:
        return None
    return parts if len(parts) == 2 else None


def list_models(
    user_id: Optional[int] = None,
    show_owned: bool = False,
    price_range: Optional[Sequence[float]] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    q = db.session.query(SimulationModel)

    if category and category != "all_categories":
        q = q.filter(SimulationModel.category == category)

    if price_range and len(price_range) == 2:
        lo, hi = (to_decimal(p) / Decimal(100) for p in price_range)
        q = q.filter(SimulationModel.price >= lo, SimulationModel.price <= hi)

    if search:
        like = f"%{search}%"
        q = q.filter(or_(SimulationModel.name.ilike(like), SimulationModel.description.ilike(like)))

    rows = q.order_by(SimulationModel.rating.desc(), SimulationModel.id).all()

    owned = licensed_model_ids(user_id)
    author_ids = {m.author_id for m in rows if m.author_id}
    authors = {}
    if author_ids:
        authors = dict(
            db.session.query(User.id, User.username).filter(User.id.in_(author_ids)).all()
        )

    symbol = currency()
    items = []
    for m in rows:
        items.append({
            "id": m.id,
            "name": m.name,
            "description": m.description,
            "price": format_amount(m.price, symbol),
            "priceInWei": m.price_in_wei,
            "rating": _rating(m.rating),
            "category": m.category,
            "features": m.features or [],
            "authorId": m.author_id,
            "authorAddress": m.author_address,
            "imageUrl": m.image_url,
            "author": authors.get(m.author_id, "Unknown"),
            "licensedToUser": m.id in owned,
        })

    if show_owned and user_id:
        items = [m for m in items if m["licensedToUser"]]
    return items


def list_categories() -> List[str]:
    rows = (
        db.session.query(SimulationModel.category)
        .distinct()
        .order_by(SimulationModel.category)
        .all()
    )
    return [r[0] for r in rows]


def featured_models(user_id: Optional[int] = None) -> List[Dict[str, Any]]:
    rows = (
        db.session.query(SimulationModel)
        .filter(SimulationModel.rating >= FEATURED_MIN_RATING)
        .order_by(SimulationModel.rating.desc(), SimulationModel.id)
        .limit(FEATURED_LIMIT)
        .all()
    )
    owned = licensed_model_ids(user_id)
    symbol = currency()
    return [
        {
            "id": m.id,
            "name": m.name,
            "description": m.description,
            "price": format_amount(m.price, symbol),
            "rating": _rating(m.rating),
            "category": m.category,
            "features": m.features or [],
            "licensedToUser": m.id in owned,
        }
        for m in rows
    ]


def available_models(user_id: int) -> List[Dict[str, Any]]:
    """Todos los modelos para el formulario de envío (id como string)."""
    rows = db.session.query(SimulationModel).order_by(SimulationModel.name).all()
    owned = licensed_model_ids(user_id)
    symbol = currency()
    return [
        {
            "id": str(m.id),
            "name": m.name,
            "price": format_amount(m.price, symbol),
            "free": m.is_free,
            "licensed": m.id in owned,
        }
        for m in rows
    ]
