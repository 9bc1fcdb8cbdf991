# lithomarket/routes/dashboard.py
from __future__ import annotations

from flask import Blueprint, jsonify

from lithomarket.services.dashboard import dashboard, documentation
from lithomarket.services.ledger import recent_transactions
from lithomarket.utils_auth import get_request_user_id, require_wallet

bp = Blueprint("dashboard", __name__, url_prefix="/api")


@bp.get("/dashboard")
def dashboard_data():
    # con o sin usuario: anónimo => estadísticas en cero
    return jsonify(dashboard(get_request_user_id()))


@bp.get("/transactions/recent")
@require_wallet
def transactions_recent():
    return jsonify(recent_transactions(get_request_user_id()))


@bp.get("/documentation")
def documentation_index():
    return jsonify(documentation())
