"""
OAuth2 token state held by the token provider.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Tokens this close to expiry are treated as already expired
EXPIRY_MARGIN = timedelta(seconds=10)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Token(BaseModel):
    """Access token plus the data needed to refresh it."""

    model_config = ConfigDict(validate_assignment=True)

    access_token: str = Field(..., min_length=1)
    token_type: str = Field(default="Bearer")
    expires_in: int = Field(default=3600, ge=0, description="Lifetime in seconds")
    expires_at: datetime | None = Field(
        default=None, description="UTC instant the token stops being valid"
    )
    refresh_token: str | None = Field(default=None)
    scopes: set[str] = Field(default_factory=set)

    @model_validator(mode="after")
    def _fill_expires_at(self) -> "Token":
        if self.expires_at is None:
            # Bypass validate_assignment to avoid re-running this validator
            object.__setattr__(
                self, "expires_at", _utcnow() + timedelta(seconds=self.expires_in)
            )
        return self

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "Token":
        """Parse a token endpoint JSON payload."""
        scope = data.get("scope") or ""
        expires_in = data.get("expires_in")
        return cls(
            access_token=data.get("access_token", ""),
            token_type=data.get("token_type") or "Bearer",
            expires_in=3600 if expires_in is None else int(expires_in),
            refresh_token=data.get("refresh_token"),
            scopes=set(scope.split()),
        )

    @property
    def is_expired(self) -> bool:
        """Whether the token is expired or about to expire."""
        if self.expires_at is None:
            return False
        return _utcnow() + EXPIRY_MARGIN >= self.expires_at

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.access_token}"
