"""Reverse proxy from guest requests to the provider Web API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tunegate.domain.entities import ProxiedResponse

if TYPE_CHECKING:
    from tunegate.application.services.token_manager import ProviderTokenManager
    from tunegate.infrastructure.integrations.provider_client import ProviderClient

logger = logging.getLogger(__name__)

FORWARDED_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")


class ProxyDispatcher:
    """Forwards a request with the server-held provider token attached.

    The guest never sees the provider token. Provider error responses are
    relayed as-is (status, body, content type); only transport failures raise.
    """

    def __init__(self, token_manager: ProviderTokenManager, client: ProviderClient) -> None:
        self._tokens = token_manager
        self._client = client

    async def forward(
        self,
        method: str,
        subpath: str,
        query: list[tuple[str, str]] | None = None,
        body: bytes | None = None,
        content_type: str | None = None,
    ) -> ProxiedResponse:
        """Re-issue a request against the provider API.

        Args:
            method: HTTP method (one of FORWARDED_METHODS)
            subpath: Path below the provider API base URL
            query: Query parameters in original order
            body: Raw request body
            content_type: Content type of the body

        Returns:
            The provider's response, unchanged

        Raises:
            ValueError: If method is not forwardable
            NoRefreshTokenError: If the provider token cannot be renewed
            UpstreamError: If the provider could not be reached
        """
        method = method.upper()
        if method not in FORWARDED_METHODS:
            raise ValueError(f"Method {method} is not forwarded")

        access_token = await self._tokens.get_valid_access_token()
        response = await self._client.api_request(
            method,
            subpath,
            access_token,
            params=query,
            content=body,
            content_type=content_type,
        )

        if response.is_error:
            logger.warning(
                "Provider API returned %d for %s /%s",
                response.status_code,
                method,
                subpath.lstrip("/"),
            )

        return ProxiedResponse(
            status_code=response.status_code,
            content=response.content,
            content_type=response.headers.get("content-type"),
        )
