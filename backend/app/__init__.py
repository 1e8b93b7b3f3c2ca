"""Flask application factory and initialization."""
import logging

from flask import Flask, jsonify
from backend.app.config import Config
from backend.app.extensions import init_extensions
from backend.app import db


def create_app(config_class=Config):
    """Create and configure the Flask application.

    Args:
        config_class: Configuration class to use

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    # Initialize Flask extensions
    init_extensions(app)

    @app.route('/api/health')
    def health_check():
        """Health check endpoint with database connectivity."""
        response = {
            "status": "ok",
            "service": "form-data-export"
        }

        try:
            db_health = db.health_check()
            response["database"] = db_health
            if db_health.get("status") != "healthy":
                response["status"] = "degraded"
        except Exception as e:
            response["database"] = {
                "status": "unhealthy",
                "error": str(e)
            }
            response["status"] = "degraded"

        return jsonify(response)

    register_blueprints(app)

    logging.getLogger(__name__).info(
        "Form data export ready (collection=%s)", app.config.get('EXPORT_COLLECTION')
    )
    return app


def configure_logging(app):
    """Apply LOG_LEVEL to the root logger unless a handler is already set up (e.g. gunicorn)."""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    root.setLevel(level)


def register_blueprints(app):
    """Register Flask blueprints with the application.

    Args:
        app: Flask application instance
    """
    # Import blueprints here to avoid circular imports
    from backend.app.blueprints.exports.routes import exports_bp

    # No prefix: the export pages live at /csv, /csv/download-excel and /csv/download-csv
    app.register_blueprint(exports_bp)
