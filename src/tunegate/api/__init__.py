"""HTTP API for tunegate.

- routers/: auth, proxy and health endpoints
- schemas/: Pydantic request/response models (camelCase on the wire)
- dependencies.py: app.state lookups and the guest bearer gate
- exception_handlers.py: domain exception -> {"error": ...} mapping
"""

from tunegate.api.exception_handlers import register_exception_handlers
from tunegate.api.routers import gateway_router, health

__all__ = [
    "gateway_router",
    "health",
    "register_exception_handlers",
]
