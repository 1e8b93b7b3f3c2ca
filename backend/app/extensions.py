"""Flask extensions initialization (Limiter, JWT) and the database teardown.

Tokens are issued by the identity service; this app only verifies them and
reads the role claims.
"""
from flask import jsonify
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_jwt_extended import JWTManager
from . import db

# Initialize Flask extensions
limiter = Limiter(
    key_func=get_remote_address,
    headers_enabled=True,
)
jwt = JWTManager()


def init_extensions(app):
    """Initialize Flask extensions with app context.

    Args:
        app: Flask application instance
    """
    limiter.init_app(app)
    jwt.init_app(app)

    # Close the per-context MongoDB client on teardown
    db.init_app(app)

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"error": "token_expired", "message": "Your session has expired. Please sign in again."}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(reason):
        app.logger.warning("Rejected invalid token: %s", reason)
        return jsonify({"error": "invalid_token", "message": reason}), 401
