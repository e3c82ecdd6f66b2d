"""Reverse proxy to the provider Web API for authenticated guests."""

import logging

from fastapi import APIRouter, Depends, Request, Response

from tunegate.api.dependencies import get_proxy_dispatcher, require_guest
from tunegate.application.services import ProxyDispatcher
from tunegate.application.services.proxy_dispatcher import FORWARDED_METHODS
from tunegate.domain.entities import GuestSession

logger = logging.getLogger(__name__)

router = APIRouter()


# Yo, one handler for every method. The provider's status, body bytes and content type
# go back untouched, error bodies included, so the frontend sees exactly what the
# provider said. Only our own failures (no token, provider unreachable) become {"error"}.
@router.api_route("/{path:path}", methods=list(FORWARDED_METHODS))
async def proxy_request(
    path: str,
    request: Request,
    _guest: GuestSession = Depends(require_guest),
    dispatcher: ProxyDispatcher = Depends(get_proxy_dispatcher),
) -> Response:
    """Forward the request to the provider API with the server-held token."""
    body = await request.body()
    proxied = await dispatcher.forward(
        method=request.method,
        subpath=path,
        query=list(request.query_params.multi_items()),
        body=body or None,
        content_type=request.headers.get("content-type"),
    )
    return Response(
        content=proxied.content,
        status_code=proxied.status_code,
        media_type=proxied.content_type,
    )
