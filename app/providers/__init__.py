"""
External data provider clients and the failure-containing gateway.
"""

from app.providers.base import (
    BaseProviderClient,
    MissingCredentialError,
    ProviderRequestError,
    ProviderTimeoutError,
)
from app.providers.gateway import ProviderFetcher, ProviderGateway
from app.providers.registry import BUILTIN_PROVIDERS, build_provider_clients

__all__ = [
    "BUILTIN_PROVIDERS",
    "BaseProviderClient",
    "MissingCredentialError",
    "ProviderFetcher",
    "ProviderGateway",
    "ProviderRequestError",
    "ProviderTimeoutError",
    "build_provider_clients",
]
