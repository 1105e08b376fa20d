"""True Wealth transaction export.

The export carries a reliable header on line 1::

    Date,Type,Currency,Price,Shares,Amount,Taxes,Fees,ISIN,Value,Value Currency,Security Name

Dates are calendar dates without a time; they are booked at 15:00
Europe/Zurich so all-day transactions order deterministically. Every
traded row needs a security lookup by ISIN (falling back to the name).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ledgerconv.ingest.casting import cast_numeric, format_timestamp, local_date_at
from ledgerconv.ingest.headers import read_header_line
from ledgerconv.market.resolver import SecurityQuery, SecurityResolver
from ledgerconv.models import (
    DATA_SOURCE_YAHOO,
    Activity,
    ActivityKind,
    RawRecord,
    Security,
)
from ledgerconv.providers.base import ProviderConverter, Rule, cell

TIMEZONE = "Europe/Zurich"
BOOKING_HOUR = 15

NUMERIC_COLUMNS = ("price", "shares", "amount", "taxes", "fees", "value")

# Substrings of the type column that mark rows to drop
IGNORED_TYPES = ("fx",)


def _type_contains(token: str) -> Callable[[RawRecord], bool]:
    def predicate(record: RawRecord) -> bool:
        return token in cell(record, "type").lower()

    return predicate


is_buy = _type_contains("buy")
is_sell = _type_contains("sell")
is_dividend = _type_contains("dividend")
is_fx = _type_contains("fx")


class TrueWealthConverter(ProviderConverter):
    """Converter for True Wealth CSV exports."""

    name = "truewealth"
    data_start = 2
    rules = (
        Rule(is_buy, ActivityKind.BUY),
        Rule(is_sell, ActivityKind.SELL),
        Rule(is_dividend, ActivityKind.DIVIDEND),
        Rule(is_fx, ActivityKind.FX),  # unreachable while IGNORED_TYPES drops fx rows
    )

    def resolve_headers(self, text: str) -> list[str]:
        """Read the header from line 1."""
        return read_header_line(text, self.delimiter)

    def is_ignored(self, record: RawRecord) -> bool:
        """Drop currency exchange rows."""
        tx_type = cell(record, "type").lower()
        return any(t in tx_type for t in IGNORED_TYPES)

    def normalize(self, record: RawRecord) -> dict[str, Any]:
        """Cast numbers and anchor the calendar date in Zurich."""
        result = cast_numeric(dict(record), NUMERIC_COLUMNS)
        result["date"] = local_date_at(cell(record, "date"), TIMEZONE, BOOKING_HOUR)
        return result

    def security_query(self, record: RawRecord) -> SecurityQuery:
        """Look up by ISIN, with the security name as display name."""
        return SecurityQuery(
            isin=cell(record, "isin") or None,
            name=cell(record, "securityName") or None,
            currency=cell(record, "currency") or None,
        )

    async def assemble(
        self,
        record: RawRecord,
        kind: ActivityKind,
        security: Security | None,
        resolver: SecurityResolver,  # noqa: ARG002
    ) -> list[Activity]:
        """Build a single activity from a resolved row."""
        if security is None:
            msg = "True Wealth rows require a resolved security"
            raise ValueError(msg)

        quantity = record["shares"]
        # Dividends are booked as one unit worth the paid amount.
        if kind is ActivityKind.DIVIDEND:
            quantity = 1.0

        return [
            Activity(
                account_id=self.config.account_id,
                comment="",
                fee=record["fees"],
                quantity=quantity,
                type=kind,
                unit_price=record["price"],
                currency=security.currency or cell(record, "currency"),
                data_source=security.data_source or DATA_SOURCE_YAHOO,
                date=format_timestamp(record["date"]),
                symbol=security.symbol,
            )
        ]
