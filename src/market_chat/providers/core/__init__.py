"""Core provider abstractions."""
from market_chat.providers.core.quote_provider_abc import (PROVIDER_EXCEPTIONS,
                                                         QuoteProviderABC)
from market_chat.providers.core.utils import (CRYPTO_IDS, crypto_base,
                                              is_crypto_symbol,
                                              normalize_symbol, round2)

__all__ = [
    "CRYPTO_IDS",
    "PROVIDER_EXCEPTIONS",
    "QuoteProviderABC",
    "crypto_base",
    "is_crypto_symbol",
    "normalize_symbol",
    "round2",
]
