"""
Example usage of restpager with a refresh token.

A refresh token obtained once through the authorization code flow can be
reused in later sessions without user interaction. This example refreshes
an access token directly from it and then pages through an endpoint.

Set RESTPAGER_CLIENT_ID, RESTPAGER_CLIENT_SECRET, RESTPAGER_API_BASE_URL,
RESTPAGER_TOKEN_URL and RESTPAGER_REFRESH_TOKEN before running.
"""

import asyncio

from pydantic import BaseModel

from restpager import ApiClient, PageFetchError, TokenProvider
from restpager.settings import get_settings
from restpager.utils.logging_config import initialize_logging


class Artist(BaseModel):
    id: str
    name: str


async def list_followed_artists(client: ApiClient) -> None:
    """Print every followed artist, page by page behind the scenes."""
    count = 0
    try:
        async for artist in client.paginate("/me/following", Artist, page_size=20):
            print(f"  - {artist.name}")
            count += 1
    except PageFetchError as e:
        print(f"  Stopped after {count} artists: {e}")
        return
    print(f"User currently follows {count} artists.")


async def main():
    """Run two sessions from the same refresh token."""
    settings = get_settings()

    # Session one: refresh from the saved token and run requests
    print(">>> Session one")
    provider = TokenProvider(settings.oauth_config())
    token = await provider.refresh_token(settings.refresh_token)
    async with ApiClient(provider) as client:
        await list_followed_artists(client)
    await provider.aclose()

    # Session two: a new provider seeded with the previous token state
    print(">>> Session two")
    provider = TokenProvider(settings.oauth_config(), token=token)
    await provider.refresh_token()
    async with ApiClient(provider) as client:
        await list_followed_artists(client)
    await provider.aclose()


if __name__ == "__main__":
    initialize_logging(file=False)
    asyncio.run(main())
