# dresscode/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def _default_collaborators(app: Flask) -> dict:
    from .integrations.blob_store import S3BlobStore
    from .integrations.notifier import LoggingNotifier, SesNotifier
    from .integrations.payment_gateway import RazorpayGateway
    from .services.session_service import SessionTokenVerifier

    cfg = app.config
    if cfg.get("MAIL_SENDER") and not app.debug:
        notifier = SesNotifier(cfg["MAIL_SENDER"], cfg["AWS_REGION"])
    else:
        notifier = LoggingNotifier()
    return {
        "payment_gateway": RazorpayGateway(cfg["RAZORPAY_KEY_ID"], cfg["RAZORPAY_SECRET"]),
        "notifier": notifier,
        "blob_store": S3BlobStore(cfg["INVOICE_BUCKET"], cfg["AWS_REGION"]),
        "token_verifier": SessionTokenVerifier(),
    }


def create_app(test_config: dict | None = None) -> Flask:
    """
    Build the application.

    test_config overrides Config keys; the special keys PAYMENT_GATEWAY,
    NOTIFIER, BLOB_STORE and TOKEN_VERIFIER replace the external
    collaborators.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    collaborators = _default_collaborators(app) if not app.config.get("TESTING") else {}
    for key in ("payment_gateway", "notifier", "blob_store", "token_verifier"):
        override = app.config.get(key.upper())
        if override is not None:
            collaborators[key] = override
    if "token_verifier" not in collaborators:
        from .services.session_service import SessionTokenVerifier
        collaborators["token_verifier"] = SessionTokenVerifier()
    app.extensions.update(collaborators)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.stores import stores_bp
    from .routes.catalog import catalog_bp
    from .routes.inventory import inventory_bp
    from .routes.orders import orders_bp
    from .routes.coupons import coupons_bp
    from .routes.billing import billing_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(stores_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(coupons_bp)
    app.register_blueprint(billing_bp)
    app.register_blueprint(reports_bp)

    allowed_origins = set(app.config["CORS_ALLOWED_ORIGINS"])

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
