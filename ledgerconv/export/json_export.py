"""JSON export of conversion envelopes.

Produces the import file understood by the portfolio tracker.

"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from ledgerconv.models import ConversionResult


class EnvelopeEncoder(json.JSONEncoder):
    """JSON encoder that writes timestamps as ISO-8601 strings."""

    def default(self, o: Any) -> Any:
        """Convert non-serializable types to JSON-safe values."""
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def export_envelope_json(
    result: ConversionResult,
    output_path: str | Path | None = None,
) -> str:
    """Export a conversion envelope to JSON.

    Args:
        result: Envelope returned by the pipeline.
        output_path: File path to write. If None, returns JSON string.

    Returns:
        JSON string, or file path if output_path given.

    """
    content = json.dumps(result.to_dict(), cls=EnvelopeEncoder, indent=2)

    if output_path:
        Path(output_path).write_text(content, encoding="utf-8")
        return str(output_path)
    return content
