"""Flask application package."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dotenv import load_dotenv
from flask import Flask


def create_app(overrides: Mapping[str, Any] | None = None) -> Flask:
    """Application factory.

    Args:
        overrides: Config values applied after the environment config.

    Returns:
        Configured Flask application.
    """
    load_dotenv()

    from lucky_draw.config import get_config
    from lucky_draw.db import init_db
    from lucky_draw.error_handlers import register_error_handlers
    from lucky_draw.logging_config import configure_logging
    from lucky_draw.realtime import init_realtime
    from lucky_draw.routes.admin import admin_bp
    from lucky_draw.routes.admin_leads import admin_leads_bp
    from lucky_draw.routes.admin_templates import admin_templates_bp
    from lucky_draw.routes.games import games_bp
    from lucky_draw.routes.health import health_bp
    from lucky_draw.routes.leads import leads_bp
    from lucky_draw.routes.web import web_bp
    from lucky_draw.storage import init_storage

    app = Flask(__name__)
    app.config.from_object(get_config())
    if overrides:
        app.config.update(overrides)

    configure_logging(app)
    hub = init_realtime(app)
    init_db(app, hub)
    init_storage(app)
    register_error_handlers(app)

    app.register_blueprint(health_bp)
    app.register_blueprint(games_bp, url_prefix="/api")
    app.register_blueprint(leads_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(admin_templates_bp, url_prefix="/api/admin")
    app.register_blueprint(admin_leads_bp, url_prefix="/api/admin")
    app.register_blueprint(web_bp)

    return app
