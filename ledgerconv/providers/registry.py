"""Provider registry: look up a converter by provider name."""

from __future__ import annotations

import logging

from ledgerconv.config import ConverterConfig
from ledgerconv.providers.base import ProviderConverter
from ledgerconv.providers.bitpanda import BitpandaConverter
from ledgerconv.providers.truewealth import TrueWealthConverter

logger = logging.getLogger(__name__)

_CONVERTERS: dict[str, type[ProviderConverter]] = {
    TrueWealthConverter.name: TrueWealthConverter,
    BitpandaConverter.name: BitpandaConverter,
}


def provider_names() -> list[str]:
    """Return the names of all supported providers, sorted."""
    return sorted(_CONVERTERS)


def get_converter(provider: str, config: ConverterConfig) -> ProviderConverter:
    """Instantiate the converter for ``provider``.

    Args:
        provider: Provider name, case-insensitive (e.g., "bitpanda").
        config: Converter configuration.

    Returns:
        A converter bound to ``config``.

    Raises:
        ValueError: If the provider is unknown, or if the provider needs a
            setting that ``config`` lacks.

    """
    cls = _CONVERTERS.get(provider.strip().lower())
    if cls is None:
        msg = f"Unknown provider '{provider}'. Choose from: {', '.join(provider_names())}"
        raise ValueError(msg)

    logger.info("Initialized %s for account %s", cls.__name__, config.account_id)
    return cls(config)
