"""Response schemas for the authorization endpoints."""

from pydantic import BaseModel, Field


class AuthErrorResponse(BaseModel):
    """Error reported by the provider or raised while completing a login."""

    error: str = Field(description="Error code or message")
    error_description: str | None = Field(default=None, description="Provider supplied detail")
