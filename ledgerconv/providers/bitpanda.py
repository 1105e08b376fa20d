"""Bitpanda transaction history export.

The export starts with seven metadata lines; the real header sits on
line 8 and is ignored in favour of a fixed column list. Trailing optional
columns are sometimes omitted entirely, so short data lines are padded
with the "-" placeholder before tokenizing.

Symbols are derived from the asset class:

- cryptocurrency: provider ticker, renamed where Yahoo differs, suffixed
  with the configured quote currency (``BTC`` -> ``BTCUSD``)
- stock (derivative): provider asset passed through
- metal: quantities in grams converted to troy ounces, symbol looked up
  by display name with the asset as fallback

Staking rewards expand into two activities: the fiat value booked as
interest on the configured reward asset, then a buy of the rewarded coins.
"""

from __future__ import annotations

import logging
from typing import Any

from ledgerconv.config import ConverterConfig
from ledgerconv.ingest.casting import (
    cast_numeric,
    format_timestamp,
    grams_to_troy_ounces,
    parse_timestamp,
    per_gram_to_per_troy_ounce,
)
from ledgerconv.ingest.headers import pad_short_rows
from ledgerconv.market.resolver import SecurityQuery, SecurityResolver
from ledgerconv.models import (
    DATA_SOURCE_MANUAL,
    DATA_SOURCE_YAHOO,
    Activity,
    ActivityKind,
    RawRecord,
    Security,
)
from ledgerconv.providers.base import ProviderConverter, Rule, cell

logger = logging.getLogger(__name__)

TIMEZONE = "Europe/Vienna"
HEADER_LINE = 8

COLUMNS = [
    "transactionId",
    "timestamp",
    "transactionType",
    "inOut",
    "amountFiat",
    "fiat",
    "amountAsset",
    "asset",
    "assetMarketPrice",
    "assetMarketPriceCurrency",
    "assetClass",
    "productId",
    "fee",
    "feeAsset",
    "feePercent",
    "spread",
    "spreadCurrency",
    "taxFiat",
]

NUMERIC_COLUMNS = (
    "amountFiat",
    "amountAsset",
    "assetMarketPrice",
    "fee",
    "feePercent",
    "spread",
    "taxFiat",
)

# Bitpanda ticker -> Yahoo ticker
SYMBOL_RENAMES: dict[str, str] = {
    "POL": "MATIC",  # Polygon
}

ASSET_CLASS_CRYPTO = "cryptocurrency"
ASSET_CLASS_METAL = "metal"
ASSET_CLASS_FIAT = "fiat"


def _tx_type(record: RawRecord) -> str:
    return cell(record, "transactionType").lower()


def is_reward(record: RawRecord) -> bool:
    return _tx_type(record) == "reward"


def is_incoming_transfer(record: RawRecord) -> bool:
    return _tx_type(record).startswith("transfer") and cell(record, "inOut").lower() == "incoming"


def is_outgoing_transfer(record: RawRecord) -> bool:
    return _tx_type(record).startswith("transfer") and cell(record, "inOut").lower() != "incoming"


def is_buy(record: RawRecord) -> bool:
    return _tx_type(record) == "buy"


def is_sell(record: RawRecord) -> bool:
    return _tx_type(record) == "sell"


def crypto_symbol(asset: str, quote_currency: str) -> str:
    """Map a Bitpanda coin ticker to a Yahoo pair symbol."""
    return f"{SYMBOL_RENAMES.get(asset, asset)}{quote_currency}"


class BitpandaConverter(ProviderConverter):
    """Converter for Bitpanda CSV exports."""

    name = "bitpanda"
    data_start = HEADER_LINE + 1
    rules = (
        Rule(is_reward, ActivityKind.INTEREST),
        Rule(is_incoming_transfer, ActivityKind.BUY),
        Rule(is_outgoing_transfer, ActivityKind.SELL),
        Rule(is_buy, ActivityKind.BUY),
        Rule(is_sell, ActivityKind.SELL),
    )

    def __init__(self, config: ConverterConfig) -> None:
        if not config.reward_asset_id:
            msg = (
                "Bitpanda conversion requires a reward asset id. Set "
                "LEDGERCONV_REWARD_ASSET_ID or pass reward_asset_id."
            )
            raise ValueError(msg)
        super().__init__(config)
        self.reward_asset_id: str = config.reward_asset_id

    def resolve_headers(self, text: str) -> list[str]:  # noqa: ARG002
        """Return the fixed schema; the file's own header is unreliable."""
        return list(COLUMNS)

    def repair(self, text: str, columns: list[str]) -> str:
        """Pad data lines that omit trailing columns."""
        return pad_short_rows(text, self.data_start, len(columns), self.delimiter)

    def is_ignored(self, record: RawRecord) -> bool:
        """Drop fiat deposits/withdrawals and rows without an asset class."""
        asset_class = cell(record, "assetClass").lower()
        return not asset_class or asset_class == ASSET_CLASS_FIAT

    def normalize(self, record: RawRecord) -> dict[str, Any]:
        """Cast numbers and parse the timestamp."""
        result = cast_numeric(dict(record), NUMERIC_COLUMNS)
        result["timestamp"] = parse_timestamp(cell(record, "timestamp"), TIMEZONE)
        return result

    async def _metal_symbol(self, asset: str, resolver: SecurityResolver) -> str:
        query = SecurityQuery(name=asset)
        try:
            security = await query.run(resolver)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Error looking up symbol for metal asset %s: %s", asset, exc)
            return asset
        if security is None or not security.symbol:
            logger.info("No symbol found for metal asset %s, using asset name", asset)
            return asset
        return security.symbol

    async def _position(
        self, record: RawRecord, resolver: SecurityResolver
    ) -> tuple[str, float, float]:
        """Derive (symbol, quantity, unit price) from the asset class."""
        asset = cell(record, "asset")
        asset_class = cell(record, "assetClass").lower()
        quantity = record["amountAsset"]
        unit_price = record["assetMarketPrice"]

        if asset_class == ASSET_CLASS_CRYPTO:
            return crypto_symbol(asset, self.config.crypto_quote_currency), quantity, unit_price
        if asset_class == ASSET_CLASS_METAL:
            symbol = await self._metal_symbol(asset, resolver)
            return (
                symbol,
                grams_to_troy_ounces(quantity),
                per_gram_to_per_troy_ounce(unit_price),
            )
        # "stock (derivative)" and unknown classes keep the provider asset id.
        return asset, quantity, unit_price

    async def assemble(
        self,
        record: RawRecord,
        kind: ActivityKind,
        security: Security | None,  # noqa: ARG002
        resolver: SecurityResolver,
    ) -> list[Activity]:
        """Build one activity, or the interest + buy pair for rewards."""
        symbol, quantity, unit_price = await self._position(record, resolver)
        date = format_timestamp(record["timestamp"])
        fiat = cell(record, "fiat")
        price_currency = cell(record, "assetMarketPriceCurrency") or fiat

        if kind is not ActivityKind.INTEREST:
            return [
                Activity(
                    account_id=self.config.account_id,
                    comment="",
                    fee=record["fee"],
                    quantity=quantity,
                    type=kind,
                    unit_price=unit_price,
                    currency=price_currency,
                    data_source=DATA_SOURCE_YAHOO,
                    date=date,
                    symbol=symbol,
                )
            ]

        asset = cell(record, "asset")
        return [
            # Cash value of the reward, booked on the manual reward asset.
            Activity(
                account_id=self.config.account_id,
                comment=f"Staking reward {asset}",
                fee=record["fee"],
                quantity=1.0,
                type=ActivityKind.INTEREST,
                unit_price=record["amountFiat"],
                currency=fiat,
                data_source=DATA_SOURCE_MANUAL,
                date=date,
                symbol=self.reward_asset_id,
            ),
            # Position increase from the rewarded coins.
            Activity(
                account_id=self.config.account_id,
                comment="",
                fee=0.0,
                quantity=quantity,
                type=ActivityKind.BUY,
                unit_price=unit_price,
                currency=price_currency,
                data_source=DATA_SOURCE_YAHOO,
                date=date,
                symbol=symbol,
            ),
        ]
