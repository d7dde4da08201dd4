"""storecart Flask application."""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask

from .common.db.session import create_session_factory
from .common.services.cart_storage import CartStorage, DatabaseCartStorage, MemoryCartStorage
from .common.services.checkout_service import CheckoutService
from .common.services.logging import set_level
from .config import CartConfig
from .routes import api
from .services import CartRegistry, JsonFileCartStorage


def build_storage(config: CartConfig) -> CartStorage:
    if config.storage_backend == "memory":
        return MemoryCartStorage()
    if config.storage_backend == "database":
        return DatabaseCartStorage(create_session_factory(config.database_url))
    return JsonFileCartStorage(config.cart_data_file)


def create_app(config: Optional[CartConfig] = None, storage: Optional[CartStorage] = None) -> Flask:
    config = config or CartConfig.load()
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))
    set_level(config.log_level)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["STORECART_CONFIG"] = config

    components = {
        "cart_registry": CartRegistry(
            storage or build_storage(config),
            config.key_prefix,
            max_carts=config.max_carts,
            idle_seconds=config.cart_idle_seconds,
        ),
        "checkout_service": CheckoutService(config.tax_rate),
    }
    app.extensions["storecart_components"] = components

    app.register_blueprint(api.api_bp)

    return app


def main() -> None:
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=False)


if __name__ == "__main__":
    main()
