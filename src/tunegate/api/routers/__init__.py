"""API router initialization."""

# Hey future me - every gateway route is reachable more than once. The grouped paths
# (/auth/..., /spotify/...) are what the browser frontend calls; /api/spotify/... is where
# older frontends point the proxy; the bare ones (/status, /guest/login, /proxy/...) are the
# short aliases. Only the grouped paths go into the OpenAPI schema so operation IDs don't collide.
# /health is NOT in here, main.py mounts it outside the configurable prefix.

from fastapi import APIRouter

from tunegate.api.routers import auth, health, proxy

gateway_router = APIRouter()

gateway_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
gateway_router.include_router(proxy.router, prefix="/spotify", tags=["Proxy"])

gateway_router.include_router(proxy.router, prefix="/api/spotify", include_in_schema=False)
gateway_router.include_router(auth.router, include_in_schema=False)
gateway_router.include_router(proxy.router, prefix="/proxy", include_in_schema=False)

__all__ = [
    "auth",
    "gateway_router",
    "health",
    "proxy",
]
