"""Converter configuration.

Built once by the entry point and passed to every converter, so the
conversion logic never reads the process environment itself.

Environment variables (read only by ``ConverterConfig.from_env``):
    LEDGERCONV_ACCOUNT_ID: Account the activities are booked to.
    LEDGERCONV_REWARD_ASSET_ID: Manual asset used to book staking rewards.
    LEDGERCONV_CRYPTO_QUOTE_CURRENCY: Quote currency appended to crypto
        tickers (default "USD").

"""

from __future__ import annotations

import os
from dataclasses import dataclass

_ENV_ACCOUNT_ID = "LEDGERCONV_ACCOUNT_ID"
_ENV_REWARD_ASSET_ID = "LEDGERCONV_REWARD_ASSET_ID"
_ENV_CRYPTO_QUOTE_CURRENCY = "LEDGERCONV_CRYPTO_QUOTE_CURRENCY"


@dataclass(frozen=True)
class ConverterConfig:
    """Immutable settings shared by all provider converters.

    Attributes:
        account_id: Target account identifier.
        reward_asset_id: Synthetic asset that receives reward bookings.
        crypto_quote_currency: Fiat suffix for crypto pair symbols.

    """

    account_id: str
    reward_asset_id: str | None = None
    crypto_quote_currency: str = "USD"

    def __post_init__(self) -> None:
        """Validate required fields."""
        if not self.account_id or not self.account_id.strip():
            msg = (
                "account_id is required. Set LEDGERCONV_ACCOUNT_ID "
                "or pass account_id explicitly."
            )
            raise ValueError(msg)

    @classmethod
    def from_env(
        cls,
        account_id: str | None = None,
        reward_asset_id: str | None = None,
        crypto_quote_currency: str | None = None,
    ) -> ConverterConfig:
        """Build a config from the environment; explicit arguments win.

        Args:
            account_id: Overrides LEDGERCONV_ACCOUNT_ID.
            reward_asset_id: Overrides LEDGERCONV_REWARD_ASSET_ID.
            crypto_quote_currency: Overrides LEDGERCONV_CRYPTO_QUOTE_CURRENCY.

        Returns:
            A validated configuration.

        Raises:
            ValueError: If no account id is available.

        """
        return cls(
            account_id=account_id or os.environ.get(_ENV_ACCOUNT_ID, ""),
            reward_asset_id=reward_asset_id
            or os.environ.get(_ENV_REWARD_ASSET_ID)
            or None,
            crypto_quote_currency=crypto_quote_currency
            or os.environ.get(_ENV_CRYPTO_QUOTE_CURRENCY)
            or "USD",
        )
