"""Account-aggregation providers."""

from pocketledger.config import Settings
from pocketledger.providers.base import (
    AggregationProvider,
    ProviderError,
    ProviderErrorKind,
    ProviderRegistry,
)
from pocketledger.providers.plaid import PlaidProvider
from pocketledger.providers.sandbox import SandboxProvider


def build_registry(settings: Settings) -> ProviderRegistry:
    """Build the providers this deployment can use.

    The sandbox provider is always available. Plaid is added when client
    credentials are configured.
    """
    providers: list[AggregationProvider] = [SandboxProvider()]
    if settings.plaid_client_id and settings.plaid_secret:
        providers.append(
            PlaidProvider(
                settings.plaid_client_id,
                settings.plaid_secret,
                environment=settings.plaid_env,
                client_name=settings.plaid_client_name,
                country_codes=settings.plaid_country_codes,
                timeout=settings.provider_timeout_seconds,
            )
        )
    return ProviderRegistry(providers, default=settings.default_provider)


__all__ = [
    "AggregationProvider",
    "PlaidProvider",
    "ProviderError",
    "ProviderErrorKind",
    "ProviderRegistry",
    "SandboxProvider",
    "build_registry",
]
