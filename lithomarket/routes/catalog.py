# lithomarket/routes/catalog.py
from __future__ import annotations

from flask import Blueprint, jsonify, request

from lithomarket.services import catalog
from lithomarket.services.licensing import purchase
from lithomarket.utils_auth import get_request_user_id, require_wallet

bp = Blueprint("catalog", __name__, url_prefix="/api/models")


@bp.get("")
def list_models():
    models = catalog.list_models(
        user_id=get_request_user_id(),
        show_owned=request.args.get("showOwned") == "true",
        price_range=catalog.parse_price_range(request.args.get("priceRange")),
        category=request.args.get("categoryFilter"),
        search=request.args.get("searchTerm"),
    )
    return jsonify({"models": models, "categories": catalog.list_categories()})


@bp.get("/featured")
def featured_models():
    return jsonify(catalog.featured_models(get_request_user_id()))


@bp.get("/available")
@require_wallet
def available_models():
    return jsonify(catalog.available_models(get_request_user_id()))


@bp.post("/<model_id>/purchase")
@require_wallet
def purchase_model(model_id: str):
    return jsonify(purchase(model_id, get_request_user_id()))
