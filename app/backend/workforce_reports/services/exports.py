"""Streaming CSV / XLSX rendering for report exports."""

from __future__ import annotations

import csv
import io
import logging
import tempfile
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from openpyxl import Workbook

from workforce_reports.services.pivot import PivotInclude, PivotTable

logger = logging.getLogger(__name__)

CSV_MEDIA_TYPE = "text/csv; charset=UTF-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

Q2 = Decimal("0.01")


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"

    @property
    def media_type(self) -> str:
        return CSV_MEDIA_TYPE if self is ExportFormat.CSV else XLSX_MEDIA_TYPE


@dataclass(slots=True)
class ExportTable:
    """Header plus a single-pass row producer."""

    columns: list[str]
    rows: Iterable[Sequence[object]]
    sheet_title: str = "report"


@dataclass(slots=True)
class ExportStream:
    media_type: str
    filename: str
    body: Iterator[bytes]

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'


def export_filename(report_key: str, from_date: date, to_date: date, export_format: ExportFormat) -> str:
    return f"{report_key}_{from_date.isoformat()}_{to_date.isoformat()}.{export_format.value}"


def _csv_value(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value.quantize(Q2, rounding=ROUND_HALF_UP))
    if isinstance(value, datetime):
        return value.isoformat(sep=" ", timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return "1" if value else "0"
    return value


def _xlsx_value(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    return value


def iter_csv(table: ExportTable) -> Iterator[bytes]:
    """Yield the header, then one encoded line per produced row."""

    buffer = io.StringIO()
    writer = csv.writer(buffer)

    def flush() -> bytes:
        chunk = buffer.getvalue().encode("utf-8")
        buffer.seek(0)
        buffer.truncate(0)
        return chunk

    writer.writerow(table.columns)
    yield flush()
    for row in table.rows:
        writer.writerow([_csv_value(value) for value in row])
        yield flush()


def iter_xlsx(table: ExportTable, *, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
    """Append rows to a write-only workbook spooled on disk, then stream the archive."""

    workbook = Workbook(write_only=True)
    sheet = workbook.create_sheet(title=table.sheet_title[:31] or "report")
    sheet.append(table.columns)
    for row in table.rows:
        sheet.append([_xlsx_value(value) for value in row])

    with tempfile.TemporaryFile() as archive:
        workbook.save(archive)
        archive.seek(0)
        while True:
            chunk = archive.read(chunk_size)
            if not chunk:
                break
            yield chunk


def render_export(
    table: ExportTable,
    *,
    report_key: str,
    from_date: date,
    to_date: date,
    export_format: ExportFormat,
    chunk_size: int = 64 * 1024,
) -> ExportStream:
    filename = export_filename(report_key, from_date, to_date, export_format)
    logger.info("Export prepared", extra={"report_key": report_key, "export_format": export_format.value})
    if export_format is ExportFormat.CSV:
        body = iter_csv(table)
    else:
        body = iter_xlsx(table, chunk_size=chunk_size)
    return ExportStream(media_type=export_format.media_type, filename=filename, body=body)


def rows_from_dicts(columns: Sequence[str], records: Iterable[dict[str, object]]) -> Iterator[list[object]]:
    for record in records:
        yield [record.get(column) for column in columns]


def pivot_export_table(
    table: PivotTable,
    *,
    include: PivotInclude,
    row_heading: str,
) -> ExportTable:
    """Lay a pivot out as a grid: one line per row member, columns per column member.

    With several metrics every column member expands to one column per metric.
    """

    multi_metric = len(table.metrics) > 1
    total_column = include.row_totals or include.grand_total

    def heading(label: str, metric) -> str:
        return f"{label} ({metric.value})" if multi_metric else label

    columns = [row_heading]
    for column in table.columns:
        columns.extend(heading(column.label, metric) for metric in table.metrics)
    if total_column:
        columns.extend(heading("Total", metric) for metric in table.metrics)

    def produce() -> Iterator[list[object]]:
        for row in table.rows:
            line: list[object] = [row.label]
            for column in table.columns:
                values = table.cell(row.member_id, column.member_id)
                for metric in table.metrics:
                    line.append(values[metric] if values is not None else None)
            if total_column:
                for metric in table.metrics:
                    line.append(table.row_totals[row.member_id][metric] if include.row_totals else None)
            yield line

        if include.column_totals or include.grand_total:
            line = ["Total"]
            for column in table.columns:
                for metric in table.metrics:
                    line.append(table.column_totals[column.member_id][metric] if include.column_totals else None)
            if total_column:
                for metric in table.metrics:
                    line.append(table.grand_total[metric] if include.grand_total else None)
            yield line

    return ExportTable(columns=columns, rows=produce(), sheet_title="pivot")
