# lithomarket/routes/__init__.py
from __future__ import annotations

import time

from flask import current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from lithomarket.database import db
from lithomarket.errors import MarketplaceError


def register_routes(app):
    # Importa y registra blueprints aquí para evitar imports circulares
    from lithomarket.routes.auth import bp as auth_bp
    app.register_blueprint(auth_bp)

    from lithomarket.routes.catalog import bp as catalog_bp
    app.register_blueprint(catalog_bp)

    from lithomarket.routes.jobs import bp as jobs_bp
    app.register_blueprint(jobs_bp)

    from lithomarket.routes.dashboard import bp as dashboard_bp
    app.register_blueprint(dashboard_bp)

    register_error_handlers(app)
    register_request_logging(app)


def register_error_handlers(app):
    @app.errorhandler(MarketplaceError)
    def handle_marketplace_error(e: MarketplaceError):
        if e.status_code >= 500:
            current_app.logger.error("%s %s -> %s", request.method, request.path, e)
        else:
            current_app.logger.info("%s %s -> %s %s", request.method, request.path, e.status_code, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(e: SQLAlchemyError):
        current_app.logger.exception("database error on %s %s: %s", request.method, request.path, e)
        db.session.rollback()
        return jsonify({"message": "Persistence failure"}), 500

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        if not request.path.startswith("/api"):
            return e
        return jsonify({"message": e.description}), e.code


def register_request_logging(app):
    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_api_call(response):
        if request.path.startswith("/api"):
            started = g.get("request_started")
            ms = (time.perf_counter() - started) * 1000 if started else 0
            current_app.logger.info(
                "%s %s %s in %dms", request.method, request.path, response.status_code, ms
            )
        return response
