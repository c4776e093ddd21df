"""
Local account service used as the provisioning target for fresh users.

A small Flask application that can register, authenticate and delete
user accounts.  The integration suite runs it on a background thread
and provisions fresh users against it over real HTTP.
"""

from __future__ import annotations

import logging
import os

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

from .config import get_config, load_account_keys

# Shared SQLAlchemy instance, bound to a concrete app inside create_app()
db = SQLAlchemy()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the account service Flask application.

    Args:
        config_name: ``"development"`` or ``"testing"``.  When ``None``,
            ``FLASK_ENV`` decides, defaulting to ``"development"``.

    Returns:
        A configured application with the account API mounted under
        ``/api/auth`` and its tables created.
    """
    app = Flask(__name__, instance_relative_config=True)
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    private_key, public_key = load_account_keys(testing=bool(app.config.get("TESTING")))
    app.config["JWT_PRIVATE_KEY"] = private_key
    app.config["JWT_PUBLIC_KEY"] = public_key

    logger.info("Creating account service app with config: %s", config_class.__name__)

    os.makedirs(app.instance_path, exist_ok=True)
    db.init_app(app)

    # The blueprint imports ``db`` from this package, so import it late
    from .routes.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api/auth")

    with app.app_context():
        db.create_all()
        logger.info("Account service database tables created")

    return app
