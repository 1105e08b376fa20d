"""Yahoo Finance security resolver.

Resolves ISINs, tickers and free-text names to Yahoo symbols via the
yfinance search API, then reads each candidate's trading currency to
honour the caller's currency hint.

Note:
    yfinance uses an unofficial Yahoo Finance API. Rate limiting
    and respectful request patterns are required; results are memoized
    per query so repeated rows only hit the API once.

    yfinance is an optional dependency (install with ``pip install
    ledgerconv[market]``). Lookups raise ``ImportError`` at call time if
    the library is not installed.

"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ledgerconv.models import DATA_SOURCE_YAHOO, Security

logger = logging.getLogger(__name__)

# Search hits inspected per query before giving up on a currency match
_MAX_CANDIDATES = 5


def _require_yfinance() -> Any:
    """Lazy-import yfinance.

    Returns:
        The yfinance module.

    Raises:
        ImportError: If yfinance is not installed.

    """
    try:
        import yfinance as yf
    except ImportError as exc:
        msg = (
            "yfinance is required for Yahoo Finance lookups. "
            "Install with: pip install ledgerconv[market]"
        )
        raise ImportError(msg) from exc
    return yf


def _quote_currency(yf: Any, symbol: str) -> str | None:
    """Return the trading currency of ``symbol``, if Yahoo reports one."""
    currency = getattr(yf.Ticker(symbol).fast_info, "currency", None)
    return currency.upper() if isinstance(currency, str) and currency else None


def search_security(
    query: str,
    currency: str | None = None,
    max_candidates: int = _MAX_CANDIDATES,
) -> Security | None:
    """Search Yahoo Finance for a single security.

    Args:
        query: ISIN, ticker or free-text name.
        currency: Preferred trading currency. When given, only a quote
            trading in this currency is accepted.
        max_candidates: Number of search hits to inspect.

    Returns:
        The first matching security, or None if nothing matches.

    Raises:
        ValueError: If query is empty.
        ImportError: If yfinance is not installed.

    """
    if not query or not query.strip():
        msg = "query must be a non-empty string"
        raise ValueError(msg)

    yf = _require_yfinance()
    quotes = yf.Search(query.strip(), max_results=max_candidates, news_count=0).quotes
    wanted = currency.strip().upper() if currency else None

    for quote in quotes[:max_candidates]:
        symbol = quote.get("symbol")
        if not symbol:
            continue
        quote_currency = _quote_currency(yf, symbol)
        if wanted and quote_currency != wanted:
            continue
        return Security(
            symbol=symbol,
            currency=quote_currency,
            data_source=DATA_SOURCE_YAHOO,
            name=quote.get("longname") or quote.get("shortname"),
        )

    logger.debug("No Yahoo match for %r (currency %s)", query, currency)
    return None


class YahooSecurityResolver:
    """Security resolver backed by Yahoo Finance search.

    Identifiers are tried from most to least specific: ISIN, ticker,
    then display name. Results, including misses, are cached for the
    lifetime of the resolver.
    """

    def __init__(self, max_candidates: int = _MAX_CANDIDATES) -> None:
        self.max_candidates = max_candidates
        self._cache: dict[tuple[str | None, ...], Security | None] = {}

    async def resolve(
        self,
        isin: str | None,
        ticker: str | None,
        name: str | None,
        currency: str | None,
    ) -> Security | None:
        """Resolve an identifier to a Yahoo security.

        Raises:
            ImportError: If yfinance is not installed.
            Exception: Network and API errors from yfinance propagate.

        """
        key = (isin, ticker, name, currency)
        if key in self._cache:
            return self._cache[key]

        security = None
        for query in (isin, ticker, name):
            if not query or not query.strip():
                continue
            security = await asyncio.to_thread(
                search_security, query, currency, self.max_candidates
            )
            if security is not None:
                break

        self._cache[key] = security
        return security
