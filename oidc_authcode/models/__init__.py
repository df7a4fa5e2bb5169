"""Database models.

Import all SQLAlchemy models here so they are registered when the app starts.
"""

from oidc_authcode.models.authorization_attempt import AuthorizationAttempt

__all__ = ["AuthorizationAttempt"]
