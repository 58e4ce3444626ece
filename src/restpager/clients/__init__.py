"""
API clients.

This module provides the OAuth2 token provider and the REST API client.
"""

from restpager.clients.api_client import ApiClient
from restpager.clients.oauth import OAuthConfig, TokenProvider, TokenSlot

__all__ = ["ApiClient", "OAuthConfig", "TokenProvider", "TokenSlot"]
