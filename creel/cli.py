"""Export one batch of events read from a JSONL file.

Settings come from the ``CREEL_*`` environment variables, exactly as for
the Dramatiq worker.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import typing as typ
from pathlib import Path

import msgspec

from creel.errors import ExportConfigError, RetryableExportError, UsageError
from creel.export.pipeline import ExportContext, ExportPipeline
from creel.logging import configure_logging, get_logger, log_warning
from creel.records import batch_from_payloads

if typ.TYPE_CHECKING:
    from creel.records import EventRecord

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_DATA_ERROR = 65
EXIT_TEMPORARY_FAILURE = 75
EXIT_CONFIG_ERROR = 78


def read_events(path: Path) -> list[EventRecord]:
    """Decode one JSON object per non-blank line of ``path``.

    Raises
    ------
    UsageError
        If a line is not a JSON object or holds unsupported values.

    """
    payloads: list[dict[str, typ.Any]] = []
    with path.open("rb") as handle:
        for number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                payload = msgspec.json.decode(line)
            except msgspec.DecodeError as exc:
                msg = f"{path}:{number}: invalid JSON: {exc}"
                raise UsageError(msg) from exc
            if not isinstance(payload, dict):
                msg = f"{path}:{number}: expected a JSON object"
                raise UsageError(msg)
            payloads.append(payload)
    return batch_from_payloads(payloads)


def main(argv: list[str] | None = None) -> int:
    """Export the events in a JSONL file as one object.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 65 for unreadable input, 75 when the upload
        failed and should be retried, 78 for invalid configuration.

    """
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("events", type=Path, help="JSONL file, one event per line")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("CREEL_LOG_LEVEL", "INFO"),
        help="femtologging level (default: CREEL_LOG_LEVEL or INFO)",
    )
    args = parser.parse_args(argv)

    level, invalid = configure_logging(args.log_level)
    if invalid:
        log_warning(logger, "Unknown log level %r; using %s", args.log_level, level)

    try:
        pipeline = ExportPipeline(ExportContext.from_env())
    except ExportConfigError as exc:
        print(f"Invalid export configuration: {exc}")
        return EXIT_CONFIG_ERROR

    try:
        batch = read_events(args.events)
        result = asyncio.run(pipeline.export(batch))
    except UsageError as exc:
        print(f"Cannot export {args.events}: {exc}")
        return EXIT_DATA_ERROR
    except OSError as exc:
        print(f"Cannot read {args.events}: {exc}")
        return EXIT_DATA_ERROR
    except RetryableExportError as exc:
        print(f"Upload failed, retry later: {exc}")
        return EXIT_TEMPORARY_FAILURE

    if result.uploaded:
        print(
            f"Uploaded {result.events_exported} "
            f"event{'' if result.events_exported == 1 else 's'} "
            f"to s3://{result.bucket}/{result.key}"
        )
    else:
        print(f"No events to export from {args.events}")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
