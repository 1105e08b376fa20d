"""Canonical ledger model shared by every provider converter.

Provider exports are normalized into ``Activity`` values and collected
in a ``ConversionResult`` envelope, the import format understood by the
downstream portfolio tracker::

    {"meta": {"date": "...", "version": "v0"},
     "activities": [{"accountId": ..., "type": "buy", ...}, ...]}

"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

EXPORT_VERSION = "v0"

DATA_SOURCE_YAHOO = "YAHOO"
DATA_SOURCE_MANUAL = "MANUAL"

# A single CSV row keyed by column name. Values are raw strings until a
# provider's ``normalize`` casts them.
type RawRecord = Mapping[str, Any]


class ActivityKind(StrEnum):
    """Closed set of activity types the portfolio tracker accepts."""

    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"
    INTEREST = "interest"
    FX = "fx"


@dataclass(frozen=True)
class Security:
    """A tradable security as returned by a security resolver.

    Attributes:
        symbol: Canonical ticker (e.g., "VTI", "SGLN.L").
        currency: Trading currency of the symbol.
        data_source: Tag of the service that produced the symbol.
        name: Display name, when the resolver knows it.

    """

    symbol: str
    currency: str | None = None
    data_source: str = DATA_SOURCE_YAHOO
    name: str | None = None


@dataclass(frozen=True)
class Activity:
    """A normalized ledger entry.

    Quantities, prices and fees are magnitudes; the direction of a trade
    lives in ``type`` only.

    Attributes:
        account_id: Target account in the portfolio tracker.
        comment: Free text, may be empty.
        fee: Fee charged for the activity.
        quantity: Number of units (always >= 0).
        type: Activity kind.
        unit_price: Price per unit (always >= 0).
        currency: Currency of ``unit_price`` and ``fee``.
        data_source: Tag of the source that produced ``symbol``.
        date: ISO-8601 timestamp with explicit UTC offset.
        symbol: Resolved or provider-native identifier.

    """

    account_id: str
    comment: str
    fee: float
    quantity: float
    type: ActivityKind
    unit_price: float
    currency: str
    data_source: str
    date: str
    symbol: str

    def __post_init__(self) -> None:
        """Reject activities that would break the ledger invariants."""
        if not isinstance(self.type, ActivityKind):
            msg = f"Unknown activity type: {self.type!r}"
            raise ValueError(msg)
        for name in ("fee", "quantity", "unit_price"):
            value = getattr(self, name)
            if value < 0:
                msg = f"{name} must be non-negative, got {value}"
                raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the tracker's camelCase import keys."""
        return {
            "accountId": self.account_id,
            "comment": self.comment,
            "fee": self.fee,
            "quantity": self.quantity,
            "type": self.type.value,
            "unitPrice": self.unit_price,
            "currency": self.currency,
            "dataSource": self.data_source,
            "date": self.date,
            "symbol": self.symbol,
        }


@dataclass(frozen=True)
class ExportMeta:
    """Envelope metadata: creation time and schema version."""

    date: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    version: str = EXPORT_VERSION


@dataclass(frozen=True)
class ConversionResult:
    """Envelope returned by a successful conversion run."""

    meta: ExportMeta
    activities: tuple[Activity, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize the envelope to plain JSON-compatible types."""
        return {
            "meta": {
                "date": self.meta.date.isoformat(),
                "version": self.meta.version,
            },
            "activities": [a.to_dict() for a in self.activities],
        }
