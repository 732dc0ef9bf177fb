"""Async client for the Twitch OAuth and Helix EventSub APIs.

Only what the subscription setup needs: an app access token, broadcaster
lookup, and listing/deleting/creating EventSub subscriptions.
"""

import logging
from typing import Any, Optional

import httpx

from freegames.models.common import SubscriptionType

logger = logging.getLogger("freegames.services.twitch")

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
HELIX_URL = "https://api.twitch.tv/helix"


class TwitchAPIError(Exception):
    """A Twitch API call returned an error response."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class TwitchClient:
    """Client-credentials Twitch API client."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
    ) -> None:
        self._http = http
        self._client_id = client_id
        self._client_secret = client_secret
        self._access_token: Optional[str] = None

    def _headers(self) -> dict[str, str]:
        if self._access_token is None:
            raise TwitchAPIError("No access token; call get_app_access_token() first")
        return {
            "Client-ID": self._client_id,
            "Authorization": f"Bearer {self._access_token}",
        }

    async def get_app_access_token(self) -> str:
        """Obtain an app access token with the client-credentials grant."""
        response = await self._http.post(
            TOKEN_URL,
            data={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "grant_type": "client_credentials",
            },
        )
        data = _json_or_none(response)
        if response.is_error or not data or "access_token" not in data:
            raise TwitchAPIError(
                f"Failed to get token: {data}",
                status_code=response.status_code,
                payload=data,
            )
        self._access_token = data["access_token"]
        logger.info("Got app access token")
        return self._access_token

    async def get_broadcaster_id(self, login: str) -> str:
        """Resolve a channel login to its numeric user id."""
        response = await self._http.get(
            f"{HELIX_URL}/users",
            params={"login": login},
            headers=self._headers(),
        )
        data = _json_or_none(response) or {}
        users = data.get("data") or []
        if response.is_error or not users:
            raise TwitchAPIError(
                f"User not found: {login}",
                status_code=response.status_code,
                payload=data,
            )
        return users[0]["id"]

    async def list_subscriptions(self) -> list[dict]:
        response = await self._http.get(
            f"{HELIX_URL}/eventsub/subscriptions",
            headers=self._headers(),
        )
        data = _json_or_none(response) or {}
        if response.is_error:
            raise TwitchAPIError(
                "Failed to list subscriptions",
                status_code=response.status_code,
                payload=data,
            )
        return data.get("data") or []

    async def delete_subscription(self, subscription_id: str) -> bool:
        """Delete one subscription. Returns False if Twitch refused."""
        response = await self._http.delete(
            f"{HELIX_URL}/eventsub/subscriptions",
            params={"id": subscription_id},
            headers=self._headers(),
        )
        if response.status_code != 204:
            logger.warning(
                "Failed to delete subscription %s: %d",
                subscription_id,
                response.status_code,
            )
            return False
        return True

    async def create_redemption_subscription(
        self,
        broadcaster_id: str,
        callback_url: str,
        secret: str,
    ) -> dict:
        """Subscribe the webhook to channel-point redemptions.

        Returns:
            The created subscription object (``data[0]`` of the response).
        """
        response = await self._http.post(
            f"{HELIX_URL}/eventsub/subscriptions",
            headers=self._headers(),
            json={
                "type": str(SubscriptionType.REWARD_REDEMPTION_ADD),
                "version": "1",
                "condition": {"broadcaster_user_id": broadcaster_id},
                "transport": {
                    "method": "webhook",
                    "callback": callback_url,
                    "secret": secret,
                },
            },
        )
        data = _json_or_none(response) or {}
        if response.is_error or not data.get("data"):
            raise TwitchAPIError(
                f"Failed to create subscription: {data.get('message')}",
                status_code=response.status_code,
                payload=data,
            )
        return data["data"][0]
