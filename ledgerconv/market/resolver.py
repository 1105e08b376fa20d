"""Security resolver contract.

A resolver maps a free-text name, ISIN or ticker plus a currency hint to
a tradable security. Returning ``None`` means "not found"; raising means
the lookup itself failed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ledgerconv.models import Security


class SecurityResolver(Protocol):
    """Anything that can look up securities asynchronously."""

    async def resolve(
        self,
        isin: str | None,
        ticker: str | None,
        name: str | None,
        currency: str | None,
    ) -> Security | None:
        """Return the matching security, or None if nothing matches."""
        ...


@dataclass(frozen=True)
class SecurityQuery:
    """Arguments of a single resolver call."""

    isin: str | None = None
    ticker: str | None = None
    name: str | None = None
    currency: str | None = None

    @property
    def identifier(self) -> str | None:
        """The most specific identifier, for log and error messages."""
        return self.isin or self.ticker or self.name

    async def run(self, resolver: SecurityResolver) -> Security | None:
        """Send this query to ``resolver``."""
        return await resolver.resolve(self.isin, self.ticker, self.name, self.currency)
