from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Dine Rank API",
        "version": "1.0.0",
        "description": "REST API for location-aware establishment search, reviews and partner listings.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    The rank refresh scheduler is started here unless RANKING_SCHEDULER_ENABLED is off
    (it is off under the testing config).
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Uniform error envelope
    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .establishments import bp as establishments_bp
    from .search import bp as search_bp
    from .reviews import bp as reviews_bp
    from .rankings import bp as rankings_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(establishments_bp, url_prefix="/api/v1")
    app.register_blueprint(search_bp, url_prefix="/api/v1")
    app.register_blueprint(reviews_bp, url_prefix="/api/v1")
    app.register_blueprint(rankings_bp, url_prefix="/api/v1")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # scoped_session.remove(), preventing connection leaks
        storage.close()

    if app.config.get("RANKING_SCHEDULER_ENABLED"):
        from services.scheduler import start_scheduler

        app.extensions["rank_scheduler"] = start_scheduler(
            storage,
            active_minutes=app.config["RANKING_ACTIVE_INTERVAL_MINUTES"],
            idle_minutes=app.config["RANKING_IDLE_INTERVAL_MINUTES"],
        )

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Dine Rank API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
