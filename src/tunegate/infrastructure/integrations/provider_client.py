"""Music provider HTTP client: OAuth token endpoint and Web API transport."""

import logging
from typing import Any, cast
from urllib.parse import urlencode

import httpx

from tunegate.config import ProviderSettings
from tunegate.domain.exceptions import (
    ConfigurationError,
    UpstreamAuthError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


def _response_body(response: httpx.Response) -> Any:
    """Decode a provider response body as JSON, falling back to text."""
    try:
        return response.json()
    except ValueError:
        return response.text


class ProviderClient:
    """HTTP client for the provider's accounts service and Web API."""

    # Hey future me - the AsyncClient is created lazily, not in __init__, so the client is
    # bound to whatever event loop is running when the first request happens (uvicorn's,
    # or the TestClient portal's). transport is only for tests (httpx.MockTransport).
    def __init__(
        self,
        settings: ProviderSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize provider client.

        Args:
            settings: Provider endpoints and client credentials
            transport: Optional httpx transport override
        """
        self.settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.timeout_seconds),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _require_configuration(self) -> None:
        if not self.settings.client_id.strip() or not self.settings.redirect_uri.strip():
            raise ConfigurationError("Spotify configuration missing")

    def build_authorization_url(self, code_challenge: str) -> str:
        """Build the provider authorization URL for the PKCE flow.

        Args:
            code_challenge: S256 challenge derived from the caller's verifier

        Returns:
            Authorization URL

        Raises:
            ConfigurationError: If client_id or redirect_uri is not configured
        """
        self._require_configuration()

        params = {
            "client_id": self.settings.client_id,
            "response_type": "code",
            "redirect_uri": self.settings.redirect_uri,
            "scope": " ".join(self.settings.scopes),
            "code_challenge_method": "S256",
            "code_challenge": code_challenge,
        }
        return f"{self.settings.authorize_url}?{urlencode(params)}"

    async def _post_token(self, data: dict[str, str]) -> dict[str, Any]:
        """POST form data to the token endpoint and return the JSON body.

        Raises:
            UpstreamAuthError: If the provider answers with a non-2xx status
            UpstreamError: If the provider could not be reached or sent a
                success body that is not a JSON object
        """
        client = await self._get_client()

        request_kwargs: dict[str, Any] = {
            "data": data,
            "headers": {"Content-Type": "application/x-www-form-urlencoded"},
        }
        # Confidential clients only; public PKCE clients have no secret
        if self.settings.client_secret:
            request_kwargs["auth"] = httpx.BasicAuth(
                self.settings.client_id, self.settings.client_secret
            )

        try:
            response = await client.post(self.settings.token_url, **request_kwargs)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Token endpoint unreachable: {e}") from e

        if response.is_error:
            body = _response_body(response)
            logger.warning(
                "Token endpoint rejected %s grant with %d",
                data.get("grant_type"),
                response.status_code,
                extra={"status_code": response.status_code},
            )
            raise UpstreamAuthError(
                f"Token request failed with status {response.status_code}",
                http_status=response.status_code,
                body=body,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(
                "Token endpoint returned a malformed response", http_status=response.status_code
            ) from e
        if not isinstance(payload, dict):
            raise UpstreamError(
                "Token endpoint returned a malformed response", http_status=response.status_code
            )
        return cast(dict[str, Any], payload)

    # Yo future me, the code is single-use and expires within minutes, and redirect_uri
    # MUST match the one in the authorization URL exactly or the provider rejects it.
    async def exchange_code(self, code: str, code_verifier: str) -> dict[str, Any]:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the provider redirect
            code_verifier: PKCE verifier the challenge was derived from

        Returns:
            Token response with access_token, expires_in and maybe refresh_token
        """
        self._require_configuration()
        return await self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.settings.redirect_uri,
                "client_id": self.settings.client_id,
                "code_verifier": code_verifier,
            }
        )

    async def refresh_token(self, refresh_token: str) -> dict[str, Any]:
        """Get a new access token from a refresh token.

        Returns:
            Token response; refresh_token is absent unless the provider rotated it
        """
        if not self.settings.client_id.strip():
            raise ConfigurationError("Spotify configuration missing")
        return await self._post_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.settings.client_id,
            }
        )

    async def api_request(
        self,
        method: str,
        path: str,
        access_token: str,
        params: list[tuple[str, str]] | None = None,
        content: bytes | None = None,
        content_type: str | None = None,
    ) -> httpx.Response:
        """Send a request to the provider Web API with a bearer token.

        Non-2xx responses are returned, not raised; the caller relays them.

        Raises:
            UpstreamError: If the provider could not be reached
        """
        client = await self._get_client()
        url = f"{self.settings.api_base_url.rstrip('/')}/{path.lstrip('/')}"

        headers = {"Authorization": f"Bearer {access_token}"}
        if content:
            headers["Content-Type"] = content_type or "application/json"

        try:
            return await client.request(
                method=method,
                url=url,
                params=params,
                content=content or None,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"Spotify API request failed: {e}") from e
