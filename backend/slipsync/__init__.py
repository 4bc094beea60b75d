# backend/slipsync/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


CORS_ALLOWED_HEADERS = ", ".join([
    "Authorization",
    "Content-Type",
    "X-Clerk-Org-Id",
    "X-Clerk-Org-Role",
    "X-Clerk-Store-Access",
    "X-Store-Id",
    "X-Device-Secret",
])


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        # Applied before extensions initialize: the engine is built from config in init_app
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.auth import auth_bp
    from .routes.stores import stores_bp
    from .routes.employees import employees_bp
    from .routes.products import products_bp, inventory_bp
    from .routes.orders import orders_bp, invoices_bp
    from .routes.printing import printing_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(stores_bp)
    app.register_blueprint(employees_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(printing_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = CORS_ALLOWED_HEADERS
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
