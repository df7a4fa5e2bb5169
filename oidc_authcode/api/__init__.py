"""API blueprints."""

from flask import Blueprint

from oidc_authcode.api.auth import auth_bp

# Create main API blueprint
api_bp = Blueprint("api", __name__, url_prefix="/api")

api_bp.register_blueprint(auth_bp)
