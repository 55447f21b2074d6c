import logging
from typing import Any

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class AuthorClient:
    """
    HTTP client for the user-service profile endpoint.

    One ``httpx.AsyncClient`` is shared by all requests; it is opened at
    application startup and closed at shutdown. Failures are never
    retried: connection errors and non-2xx responses propagate to the
    caller as ``httpx`` exceptions.
    """

    PROFILE_PATH = "/api/user/specificuser/{user_id}"

    def __init__(self) -> None:
        self._client: httpx.AsyncClient | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Open the connection pool. *transport* lets tests stub the service."""
        await self.disconnect()
        base_url = base_url or settings.service_url("user")
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=settings.USER_SERVICE_TIMEOUT,
            transport=transport,
        )
        logger.info("User service client ready: %s", base_url)

    async def disconnect(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_author(self, user_id: int, token: str) -> Any:
        """
        Return the profile of *user_id*, authenticating with the caller's
        bearer *token*. The user-service wraps its payload as
        ``{"data": <profile>}``; only the inner payload is returned. Any
        other JSON shape raises ``ValueError``.
        """
        if self._client is None:
            raise RuntimeError("AuthorClient is not connected")
        response = await self._client.get(
            self.PROFILE_PATH.format(user_id=user_id),
            headers={"Authorization": f"Bearer {token}"},
        )
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(
                f"User service returned {type(body).__name__} for user {user_id}, expected an object"
            )
        return body.get("data")


# Module-level singleton shared across all request handlers.
author_client = AuthorClient()
