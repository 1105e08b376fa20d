"""ledgerconv sidecar entry point.

Communicates with the host process via stdin/stdout using
newline-delimited JSON messages. Logs go to stderr.

Protocol:
    Request:  {"id": "uuid", "method": "string", "params": {}}
    Response: {"id": "uuid", "result": {}}
    Error:    {"id": "uuid", "error": {"message": "string"}}

Methods:
    providers.list: Names of the supported providers.
    convert: Convert one provider export into an import envelope.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Any

from ledgerconv import log_config
from ledgerconv.config import ConverterConfig
from ledgerconv.export.json_export import EnvelopeEncoder, export_envelope_json
from ledgerconv.market.yahoo import YahooSecurityResolver
from ledgerconv.pipeline import ConversionPipeline
from ledgerconv.providers.registry import get_converter, provider_names

logger = logging.getLogger(__name__)


def _handle_convert(
    provider: str,
    file_path: str | None = None,
    csv_content: str | None = None,
    account_id: str | None = None,
    reward_asset_id: str | None = None,
    output_path: str | None = None,
) -> dict[str, Any]:
    """Convert a provider export via sidecar.

    Provide either file_path or csv_content, not both.

    Args:
        provider: Provider name (see ``providers.list``).
        file_path: Path to the export file.
        csv_content: Raw export contents as a string.
        account_id: Overrides LEDGERCONV_ACCOUNT_ID.
        reward_asset_id: Overrides LEDGERCONV_REWARD_ASSET_ID.
        output_path: Write the envelope here instead of returning it.

    Returns:
        The envelope, or a summary with the written path when
        output_path is given. Either way ``skipped`` lists dropped rows.

    Raises:
        ValueError: If neither file_path nor csv_content is provided,
            or if the configuration is incomplete.
        ParseError: If the export cannot be read.
        ResolutionError: If a security lookup fails.

    """
    if file_path is None and csv_content is None:
        msg = "Provide either file_path or csv_content"
        raise ValueError(msg)

    text = (
        Path(file_path).read_text(encoding="utf-8")
        if file_path is not None
        else csv_content
    )

    config = ConverterConfig.from_env(
        account_id=account_id,
        reward_asset_id=reward_asset_id,
    )
    converter = get_converter(provider, config)
    pipeline = ConversionPipeline(converter, YahooSecurityResolver())
    result = asyncio.run(pipeline.run(text or ""))

    skipped = [
        {"line": s.line, "reason": s.reason.value, "detail": s.detail}
        for s in pipeline.skipped
    ]
    if output_path:
        return {
            "output_path": export_envelope_json(result, output_path),
            "activities_count": len(result.activities),
            "skipped": skipped,
        }
    return {**result.to_dict(), "skipped": skipped}


def dispatch(method: str, params: dict[str, Any]) -> Any:
    """Route a method call to the appropriate handler.

    Args:
        method: The method name (e.g., "convert").
        params: The parameters for the method.

    Returns:
        The result of the method call.

    Raises:
        ValueError: If the method is not recognized.

    """
    handlers: dict[str, Any] = {
        "providers.list": provider_names,
        "convert": _handle_convert,
    }
    if method not in handlers:
        msg = f"Unknown method: {method}"
        raise ValueError(msg)
    return handlers[method](**params)


def main(argv: list[str] | None = None) -> None:
    """Run the sidecar message loop.

    Reads newline-delimited JSON from stdin, dispatches to handlers,
    and writes JSON responses to stdout. Runs indefinitely until
    stdin is closed.
    """
    parser = argparse.ArgumentParser(description="ledgerconv JSON-lines sidecar")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    log_config.setup(verbose=args.verbose)

    for raw_line in sys.stdin:
        stripped = raw_line.strip()
        if not stripped:
            continue

        request: dict[str, Any] = {}
        try:
            request = json.loads(stripped)
            request_id = request.get("id", "unknown")
            method = request["method"]
            params = request.get("params", {})
            result = dispatch(method, params)
            response: dict[str, Any] = {"id": request_id, "result": result}
        except Exception as exc:  # noqa: BLE001
            logger.error("Request failed: %s", exc)
            request_id = (
                request.get("id", "unknown") if isinstance(request, dict) else "unknown"
            )
            response = {
                "id": request_id,
                "error": {
                    "message": str(exc),
                    "traceback": traceback.format_exc(),
                },
            }
        sys.stdout.write(json.dumps(response, cls=EnvelopeEncoder) + "\n")
        sys.stdout.flush()


if __name__ == "__main__":
    main()
