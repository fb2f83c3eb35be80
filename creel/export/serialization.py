r"""Serialise event batches into upload bodies.

Two shapes are produced:

Line-delimited JSON (``jsonl``, ``txt``)
    One compact JSON object per record, records joined by ``\n``. Nested
    mappings stay nested, so each line decodes back to the original record.

Tabular text (``csv``, ``xlsx``)
    A header row built from the first record's field names, then one row per
    record. Rows end with ``\r\n``. Scalars are written in their JSON form
    (strings therefore appear as JSON string literals) and nested values are
    written as their JSON text inside a quoted cell with embedded quotes
    doubled. Columns are positional against the header: fields missing from
    the first record are dropped, and fields a later record lacks become
    empty cells.

Usage
-----
>>> from creel.records import EventRecord
>>> batch = [EventRecord({"event": "signup", "distinct_id": "u1"})]
>>> serialize_batch(batch, UploadFormat.JSONL)
b'{"event":"signup","distinct_id":"u1"}'
>>> serialize_batch(batch, UploadFormat.CSV)
b'"event","distinct_id"\r\n"signup","u1"\r\n'

"""

from __future__ import annotations

import enum
import typing as typ

import msgspec

from creel.errors import EmptyBatchError, ExportConfigError

if typ.TYPE_CHECKING:
    from creel.records import EventBatch, EventRecord, FieldValue

_ROW_TERMINATOR = "\r\n"
_encoder = msgspec.json.Encoder()


class UploadFormat(enum.StrEnum):
    """Supported upload formats; the value doubles as the key extension."""

    JSONL = "jsonl"
    TXT = "txt"
    CSV = "csv"
    XLSX = "xlsx"

    @classmethod
    def parse(cls, raw: str) -> UploadFormat:
        """Return the format named by ``raw``.

        Raises
        ------
        ExportConfigError
            If ``raw`` does not name a supported format.

        """
        try:
            return cls(raw.strip().lower())
        except ValueError as exc:
            raise ExportConfigError.invalid_choice(
                "upload format", raw, [member.value for member in cls]
            ) from exc

    @property
    def is_tabular(self) -> bool:
        """Return True for formats rendered as header plus rows."""
        return self in {UploadFormat.CSV, UploadFormat.XLSX}

    @property
    def content_type(self) -> str:
        """Return the MIME type of the uncompressed body."""
        if self.is_tabular:
            return "text/csv"
        if self is UploadFormat.TXT:
            return "text/plain"
        return "application/x-ndjson"


def _quote(text: str) -> str:
    escaped = text.replace('"', '""')
    return f'"{escaped}"'


def _json_text(value: FieldValue) -> str:
    return _encoder.encode(value).decode("utf-8")


def _render_cell(value: FieldValue) -> str:
    match value:
        case dict() | list():
            return _quote(_json_text(value))
        case _:
            return _json_text(value)


def _render_row(record: EventRecord, header: typ.Sequence[str]) -> str:
    cells = [
        _render_cell(record[column]) if column in record else "" for column in header
    ]
    return ",".join(cells) + _ROW_TERMINATOR


def _serialize_tabular(batch: EventBatch, upload_format: UploadFormat) -> bytes:
    if not batch:
        raise EmptyBatchError(upload_format.value)
    header = list(batch[0])
    lines = [",".join(_quote(column) for column in header) + _ROW_TERMINATOR]
    lines.extend(_render_row(record, header) for record in batch)
    return "".join(lines).encode("utf-8")


def _serialize_lines(batch: EventBatch) -> bytes:
    return b"\n".join(_encoder.encode(record.to_dict()) for record in batch)


def serialize_batch(batch: EventBatch, upload_format: UploadFormat) -> bytes:
    """Render ``batch`` as the body of an upload in ``upload_format``.

    Parameters
    ----------
    batch
        Records to serialise, in export order.
    upload_format
        Target format.

    Returns
    -------
    bytes
        UTF-8 encoded body.

    Raises
    ------
    EmptyBatchError
        If a tabular format is requested for an empty batch.

    """
    if upload_format.is_tabular:
        return _serialize_tabular(batch, upload_format)
    return _serialize_lines(batch)


__all__ = ["UploadFormat", "serialize_batch"]
