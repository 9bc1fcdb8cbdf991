# lithomarket/__init__.py
from __future__ import annotations

import logging

from flask import Flask

from lithomarket.config import config_for, ensure_sqlite_dir
from lithomarket.database import db, init_db, migrate  # noqa: F401


def create_app(config=None) -> Flask:
    """
    config puede ser:
      - None: se elige por LITHOMARKET_ENV (development/production/testing)
      - una clase de config
      - un dict que se aplica encima de la config por defecto
    """
    app = Flask(__name__)

    # -----------------------------------------------------------
    # CONFIG
    # -----------------------------------------------------------
    if config is None or isinstance(config, dict):
        app.config.from_object(config_for())
        if config:
            app.config.update(config)
    else:
        app.config.from_object(config)

    # no-op si el proceso (waitress, pytest) ya configuró logging
    logging.basicConfig(
        level=logging.DEBUG if app.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ensure_sqlite_dir(app.config["SQLALCHEMY_DATABASE_URI"])

    # -----------------------------------------------------------
    # INICIALIZACIÓN DE EXTENSIONES
    # -----------------------------------------------------------
    init_db(app)

    # Importar modelos
    from lithomarket import models  # noqa: F401
    from lithomarket import models_job  # noqa: F401
    from lithomarket import models_transaction  # noqa: F401

    # -----------------------------------------------------------
    # BLUEPRINTS + CLI
    # -----------------------------------------------------------
    from lithomarket.routes import register_routes
    register_routes(app)

    from lithomarket.cli import register_cli
    register_cli(app)

    if not app.config.get("WALLET_AUTH_UNVERIFIED"):
        app.logger.info("wallet sign-in disabled (WALLET_AUTH_UNVERIFIED off)")
    else:
        app.logger.warning("wallet sign-in ON without signature verification: do not use in production")

    # -----------------------------------------------------------
    # HEALTHCHECK
    # -----------------------------------------------------------
    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    # Crear tablas si no existen
    with app.app_context():
        db.create_all()

    return app
