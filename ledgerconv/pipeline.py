"""Conversion pipeline: one provider export in, one envelope out.

Rows are processed strictly in file order, one at a time. The security
lookup is the only suspension point and is awaited before the next row
starts, so the activity order always matches the input order (reward
pairs included).

State machine::

    START -> PARSING -> PARSE_FAILED
                     -> ROW_PROCESSING -> ABORTED
                                       -> COMPLETED

"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from ledgerconv.errors import ParseError, ResolutionError
from ledgerconv.ingest.csv_reader import SourceRow, read_records
from ledgerconv.market.resolver import SecurityResolver
from ledgerconv.models import Activity, ConversionResult, ExportMeta
from ledgerconv.providers.base import ProviderConverter

logger = logging.getLogger(__name__)

type ProgressCallback = Callable[[int, int], None]


class PipelineState(StrEnum):
    """Lifecycle of a single conversion run."""

    START = "start"
    PARSING = "parsing"
    PARSE_FAILED = "parse_failed"
    ROW_PROCESSING = "row_processing"
    ABORTED = "aborted"
    COMPLETED = "completed"


class SkipReason(StrEnum):
    """Why a row produced no activity."""

    IGNORED = "ignored"
    UNCLASSIFIED = "unclassified"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class RowSkip:
    """A row that was dropped without aborting the run."""

    line: int
    reason: SkipReason
    detail: str = ""


class ConversionPipeline:
    """Run one provider converter over one export.

    A pipeline instance is single-use: create a new one per file.

    Args:
        converter: Provider converter to apply.
        resolver: Security resolver used for lookups.
        progress: Optional callback invoked as ``progress(done, total)``
            after each record.

    """

    def __init__(
        self,
        converter: ProviderConverter,
        resolver: SecurityResolver,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.converter = converter
        self.resolver = resolver
        self.progress = progress
        self.state = PipelineState.START
        self.skipped: list[RowSkip] = []

    async def run(self, text: str) -> ConversionResult:
        """Convert ``text`` into an envelope.

        Args:
            text: Raw contents of the provider export.

        Returns:
            The envelope with activities in input order.

        Raises:
            ParseError: If the export yields no records or cannot be read.
            ResolutionError: If the security resolver fails on a row.

        """
        if self.state is not PipelineState.START:
            msg = f"Pipeline already ran (state: {self.state})"
            raise RuntimeError(msg)

        rows = self._parse(text)

        self.state = PipelineState.ROW_PROCESSING
        logger.info(
            "Read %s export (%d records). Start processing..",
            self.converter.name,
            len(rows),
        )
        activities: list[Activity] = []
        try:
            for done, row in enumerate(rows, start=1):
                activities.extend(await self._process(row))
                if self.progress is not None:
                    self.progress(done, len(rows))
        except (ParseError, ResolutionError):
            self.state = PipelineState.ABORTED
            raise

        self.state = PipelineState.COMPLETED
        self._log_summary(len(rows), len(activities))
        return ConversionResult(meta=ExportMeta(), activities=tuple(activities))

    def _parse(self, text: str) -> list[SourceRow]:
        self.state = PipelineState.PARSING
        converter = self.converter
        try:
            columns = converter.resolve_headers(text)
            repaired = converter.repair(text, columns)
            return read_records(
                repaired,
                columns,
                data_start=converter.data_start,
                delimiter=converter.delimiter,
            )
        except ParseError:
            self.state = PipelineState.PARSE_FAILED
            raise

    async def _process(self, row: SourceRow) -> list[Activity]:
        converter = self.converter

        if converter.is_ignored(row.record):
            self._skip(row, SkipReason.IGNORED)
            return []

        try:
            record = converter.normalize(row.record)
        except ValueError as exc:
            msg = f"An error occurred while parsing! Details: line {row.line}: {exc}"
            raise ParseError(msg) from exc

        kind = converter.classify(record)
        if kind is None:
            self._skip(row, SkipReason.UNCLASSIFIED)
            return []

        security = None
        query = converter.security_query(record)
        if query is not None:
            try:
                security = await query.run(self.resolver)
            except Exception as exc:
                logger.error(
                    "Error while looking up %s on line %d",
                    query.identifier,
                    row.line,
                )
                raise ResolutionError(row.line, query.identifier, str(exc)) from exc
            if security is None:
                logger.warning(
                    "No result found for %s action for %s with currency %s! "
                    "Please add this manually..",
                    kind,
                    query.identifier,
                    query.currency,
                )
                self._skip(row, SkipReason.UNRESOLVED, query.identifier or "")
                return []
            logger.debug(
                "Line %d: resolved %s to %s (%s)",
                row.line,
                query.identifier,
                security.symbol,
                security.name or "unnamed",
            )

        return await converter.assemble(record, kind, security, self.resolver)

    def _skip(self, row: SourceRow, reason: SkipReason, detail: str = "") -> None:
        logger.debug("Skipping line %d (%s)", row.line, reason)
        self.skipped.append(RowSkip(line=row.line, reason=reason, detail=detail))

    def _log_summary(self, n_records: int, n_activities: int) -> None:
        if self.skipped:
            counts = Counter(s.reason.value for s in self.skipped)
            logger.warning(
                "Skipped %d of %d rows (%s)",
                len(self.skipped),
                n_records,
                ", ".join(f"{reason}={n}" for reason, n in sorted(counts.items())),
            )
        logger.info("Converted %d activities from %d rows", n_activities, n_records)


async def convert(
    converter: ProviderConverter,
    text: str,
    resolver: SecurityResolver,
    progress: ProgressCallback | None = None,
) -> ConversionResult:
    """Convert one export with a fresh pipeline.

    Raises:
        ParseError: If the export cannot be read.
        ResolutionError: If a security lookup fails.

    """
    return await ConversionPipeline(converter, resolver, progress).run(text)
