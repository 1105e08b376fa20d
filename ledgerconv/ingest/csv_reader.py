"""Tokenize provider exports into raw records.

Parsing follows RFC 4180 via the stdlib :mod:`csv` module; only the
mapping of cells onto a provider's column names happens here.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from typing import Any

from ledgerconv.errors import ParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceRow:
    """A raw record together with its position in the source file.

    Attributes:
        line: 1-based line number of the row.
        record: Column name to raw cell string.

    """

    line: int
    record: dict[str, Any]


def read_records(
    text: str,
    columns: list[str],
    data_start: int = 2,
    delimiter: str = ",",
) -> list[SourceRow]:
    """Split CSV text into records keyed by ``columns``.

    Blank lines are skipped. Rows shorter than the schema get empty
    strings for the missing cells; surplus cells are dropped.

    Args:
        text: Raw (possibly repaired) file contents.
        columns: Ordered column names to assign to each row.
        data_start: 1-based line number of the first data line.
        delimiter: Column delimiter.

    Returns:
        Records in file order.

    Raises:
        ParseError: If the tokenizer fails or no record is found.

    """
    if not columns:
        msg = "An error occurred while parsing! Details: no columns found"
        raise ParseError(msg)

    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    rows: list[SourceRow] = []
    try:
        for row in reader:
            line = reader.line_num
            if line < data_start or not any(cell.strip() for cell in row):
                continue
            cells = row + [""] * (len(columns) - len(row))
            rows.append(SourceRow(line=line, record=dict(zip(columns, cells, strict=False))))
    except csv.Error as exc:
        msg = f"An error occurred while parsing! Details: line {reader.line_num}: {exc}"
        raise ParseError(msg) from exc

    if not rows:
        msg = "An error occurred while parsing! Details: no records found"
        raise ParseError(msg)

    logger.debug("Tokenized %d records (%d columns)", len(rows), len(columns))
    return rows
