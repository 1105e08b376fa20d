"""Errors that terminate a conversion run.

Row-local anomalies (ignored, unclassifiable or unresolved rows) are not
exceptions; the pipeline records them as skips and moves on.
"""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for errors that abort a conversion run."""


class ParseError(ConversionError):
    """The export could not be tokenized or yielded no usable records."""


class ResolutionError(ConversionError):
    """The security resolver failed while processing a row.

    Attributes:
        line: 1-based line number of the row in the source file.
        identifier: The identifier the lookup was attempted with.

    """

    def __init__(self, line: int, identifier: str | None, reason: str = "") -> None:
        self.line = line
        self.identifier = identifier
        msg = f"Security lookup failed for {identifier!r} on line {line}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
