"""Configuration management using Pydantic Settings."""

from typing import TYPE_CHECKING

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from restpager.utils.errors import ConfigurationError

if TYPE_CHECKING:
    from restpager.clients.oauth import OAuthConfig

# Global settings singleton
_settings: "RestPagerSettings | None" = None


class RestPagerSettings(BaseSettings):
    """restpager settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RESTPAGER_",
        extra="ignore",
    )

    # OAuth2 client
    client_id: str = Field(default="")
    client_secret: str = Field(default="")
    redirect_uri: str = Field(default="http://localhost:8888/callback")
    scopes: str = Field(default="", description="Space separated scopes")
    refresh_token: str = Field(default="")

    # Endpoints
    api_base_url: str = Field(default="https://api.example.com/v1")
    token_url: str = Field(default="https://auth.example.com/api/token")
    authorize_url: str = Field(default="https://auth.example.com/authorize")

    # Requests
    page_size: int = Field(default=50, ge=1)
    timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=1)

    @property
    def has_credentials(self) -> bool:
        """Whether client credentials are configured."""
        return bool(self.client_id and self.client_secret)

    def oauth_config(self) -> "OAuthConfig":
        """Build the OAuth client configuration."""
        from restpager.clients.oauth import OAuthConfig

        if not self.client_id:
            raise ConfigurationError(
                "OAuth client id is not configured",
                "Set RESTPAGER_CLIENT_ID in the environment or .env file",
            )
        return OAuthConfig(
            client_id=self.client_id,
            client_secret=self.client_secret or None,
            redirect_uri=self.redirect_uri,
            scopes=set(self.scopes.split()),
            token_url=self.token_url,
            authorize_url=self.authorize_url,
        )


def get_settings() -> RestPagerSettings:
    """Get or create the global settings singleton."""
    global _settings
    if _settings is None:
        _settings = RestPagerSettings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings (for testing)."""
    global _settings
    _settings = None
