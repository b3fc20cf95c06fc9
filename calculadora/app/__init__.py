"""Application factory and app-wide configuration."""

import atexit
import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS

from calculadora.app.api.routes import api_bp
from calculadora.config import Settings, get_settings
from calculadora.services.bcb import BCBClient
from calculadora.services.cache import IndexCache


def create_app(
    settings: Optional[Settings] = None,
    cache: Optional[IndexCache] = None,
) -> Flask:
    """Build the Flask app instance with its index client and cache."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)

    CORS(
        app,
        resources={r"/api/*": {"origins": settings.cors_origins}},
        supports_credentials=True,
    )

    client = BCBClient(settings)
    if cache is None:
        cache = IndexCache.from_settings(client.fetch_series, settings)
        cache.load()
        atexit.register(cache.flush)

    app.config["CALC_SETTINGS"] = settings
    app.extensions["bcb_client"] = client
    app.extensions["index_cache"] = cache

    app.register_blueprint(api_bp, url_prefix="/api")
    return app
