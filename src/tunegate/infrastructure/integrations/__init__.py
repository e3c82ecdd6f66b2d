"""External service integrations."""

from .provider_client import ProviderClient

__all__ = ["ProviderClient"]
