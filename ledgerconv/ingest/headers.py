"""Column header resolution and structural repair of provider exports.

Two modes are supported:

- Header-line mode: the first line is a trustworthy header. Tokens are
  trimmed and camel-cased (``"Security Name"`` -> ``"securityName"``).
- Fixed-schema mode: the provider buries its header below metadata
  lines, so converters ship a hard-coded column list and the file's own
  header is skipped by line number.

"""

from __future__ import annotations

import re

PLACEHOLDER = "-"

_WORD_SPLIT = re.compile(r"[^0-9A-Za-z]+")


def camelize(token: str) -> str:
    """Convert a free-text column label to a camelCase key.

    Args:
        token: Raw header cell.

    Returns:
        camelCase key, or an empty string if the token has no
        alphanumeric characters.

    """
    words = [w for w in _WORD_SPLIT.split(token.strip()) if w]
    if not words:
        return ""
    first, *rest = words
    head = first.lower() if first.isupper() else first[0].lower() + first[1:]
    return head + "".join(w[0].upper() + w[1:] for w in rest)


def read_header_line(text: str, delimiter: str = ",") -> list[str]:
    """Derive column names from the first line of an export.

    Empty tokens are dropped and duplicate names get a numeric suffix so
    the result is always a list of unique names. An empty file yields an
    empty list.

    Args:
        text: Raw file contents.
        delimiter: Column delimiter.

    Returns:
        Ordered list of unique column names.

    """
    first_line = text.lstrip("\ufeff").split("\n", 1)[0].rstrip("\r")
    if not first_line.strip():
        return []

    columns: list[str] = []
    seen: dict[str, int] = {}
    for token in first_line.split(delimiter):
        name = camelize(token.strip().strip('"'))
        if not name:
            continue
        count = seen.get(name, 0)
        seen[name] = count + 1
        columns.append(name if count == 0 else f"{name}{count + 1}")
    return columns


def pad_short_rows(
    text: str,
    data_start: int,
    n_columns: int,
    delimiter: str = ",",
    placeholder: str = PLACEHOLDER,
) -> str:
    """Append placeholder cells to data lines that omit trailing columns.

    Some exports drop optional trailing columns entirely instead of
    leaving them empty. The repair is purely textual and must run before
    the tokenizer sees the text.

    Args:
        text: Raw file contents.
        data_start: 1-based line number of the first data line.
        n_columns: Number of columns declared by the schema.
        delimiter: Column delimiter.
        placeholder: Marker written into each missing cell.

    Returns:
        The text with short data lines padded on the right.

    """
    lines = text.splitlines()
    for idx in range(data_start - 1, len(lines)):
        line = lines[idx]
        if not line.strip():
            continue
        missing = n_columns - len(line.split(delimiter))
        if missing > 0:
            lines[idx] = line + (delimiter + placeholder) * missing
    return "\n".join(lines)
