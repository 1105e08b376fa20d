"""Capability interface implemented by every provider converter.

A converter knows one provider's export dialect: where its header is,
which rows to drop, how to cast cells, how to classify a row and how to
turn it into ledger activities. The pipeline drives these steps in a
fixed order and owns everything else (tokenizing, lookups, errors).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, ClassVar, NamedTuple

from ledgerconv.config import ConverterConfig
from ledgerconv.ingest.headers import PLACEHOLDER
from ledgerconv.market.resolver import SecurityQuery, SecurityResolver
from ledgerconv.models import Activity, ActivityKind, RawRecord, Security


class Rule(NamedTuple):
    """One row of a classification table."""

    predicate: Callable[[RawRecord], bool]
    kind: ActivityKind


def classify_with(rules: tuple[Rule, ...], record: RawRecord) -> ActivityKind | None:
    """Evaluate ``rules`` top to bottom; the first match wins.

    Returns:
        The matching kind, or None when no rule applies.

    """
    for rule in rules:
        if rule.predicate(record):
            return rule.kind
    return None


def cell(record: RawRecord, column: str) -> str:
    """Return a cell as a stripped string.

    Missing cells and the padding placeholder both read as "".
    """
    value = record.get(column)
    text = "" if value is None else str(value).strip()
    return "" if text == PLACEHOLDER else text


class ProviderConverter(ABC):
    """Base class for provider converters.

    Subclasses set ``name``, ``data_start`` and ``rules`` and implement
    the abstract steps.
    """

    name: ClassVar[str]
    delimiter: ClassVar[str] = ","
    # 1-based line number of the first data row
    data_start: ClassVar[int] = 2
    rules: ClassVar[tuple[Rule, ...]] = ()

    def __init__(self, config: ConverterConfig) -> None:
        self.config = config

    @abstractmethod
    def resolve_headers(self, text: str) -> list[str]:
        """Return the ordered column names for ``text``."""

    def repair(self, text: str, columns: list[str]) -> str:  # noqa: ARG002
        """Fix structural defects before tokenizing (default: none)."""
        return text

    @abstractmethod
    def is_ignored(self, record: RawRecord) -> bool:
        """Return True for rows that must be dropped before any casting."""

    @abstractmethod
    def normalize(self, record: RawRecord) -> dict[str, Any]:
        """Return a copy of ``record`` with typed cells.

        Raises:
            ValueError: If a date cell cannot be parsed.

        """

    def classify(self, record: RawRecord) -> ActivityKind | None:
        """Map a normalized record to an activity kind, or None."""
        return classify_with(self.rules, record)

    def security_query(self, record: RawRecord) -> SecurityQuery | None:  # noqa: ARG002
        """Return the mandatory lookup for ``record``, if it needs one.

        Rows with a query are skipped when the resolver finds nothing and
        abort the run when the resolver fails.
        """
        return None

    @abstractmethod
    async def assemble(
        self,
        record: RawRecord,
        kind: ActivityKind,
        security: Security | None,
        resolver: SecurityResolver,
    ) -> list[Activity]:
        """Build the activities for one classified row."""
