"""Shared pytest fixtures for ledgerconv tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from ledgerconv.config import ConverterConfig
from ledgerconv.models import Security

TRUEWEALTH_HEADER = (
    "Date,Type,Currency,Price,Shares,Amount,Taxes,Fees,ISIN,Value,Value Currency,Security Name"
)

BITPANDA_PREAMBLE = (
    '"Disclaimer: All data is without guarantee, errors and changes are reserved."\n'
    "Transaction history\n"
    "Name,Jane Doe\n"
    "Address,Example Street 1\n"
    "Email,jane@example.com\n"
    "Created at,2024-01-02T10:00:00+01:00\n"
    "\n"
    "Transaction ID,Timestamp,Transaction Type,In/Out,Amount Fiat,Fiat,Amount Asset,"
    "Asset,Asset market price,Asset market price currency,Asset class,Product ID,Fee,"
    "Fee asset,Fee percent,Spread,Spread Currency,Tax Fiat\n"
)


class StubResolver:
    """In-memory security resolver that records every call.

    ``table`` maps an identifier (ISIN, ticker or name) to either a
    Security or an exception to raise.
    """

    def __init__(self, table: dict[str, Security | Exception] | None = None) -> None:
        self.table = table or {}
        self.calls: list[tuple[str | None, str | None, str | None, str | None]] = []

    async def resolve(
        self,
        isin: str | None,
        ticker: str | None,
        name: str | None,
        currency: str | None,
    ) -> Security | None:
        self.calls.append((isin, ticker, name, currency))
        for key in (isin, ticker, name):
            if key and key in self.table:
                hit = self.table[key]
                if isinstance(hit, Exception):
                    raise hit
                return hit
        return None


@pytest.fixture
def config() -> ConverterConfig:
    """Provide a complete converter configuration."""
    return ConverterConfig(account_id="acc-1", reward_asset_id="reward-asset")


@pytest.fixture
def make_resolver() -> Callable[..., StubResolver]:
    """Provide a factory for stub resolvers."""
    return StubResolver


@pytest.fixture
def truewealth_csv() -> Callable[..., str]:
    """Build a True Wealth export from data lines."""

    def build(*lines: str) -> str:
        return "\n".join([TRUEWEALTH_HEADER, *lines]) + "\n"

    return build


@pytest.fixture
def bitpanda_csv() -> Callable[..., str]:
    """Build a Bitpanda export (metadata + header on line 8) from data lines."""

    def build(*lines: str) -> str:
        return BITPANDA_PREAMBLE + "\n".join(lines) + "\n"

    return build
