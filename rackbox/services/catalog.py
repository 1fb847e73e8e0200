"""Master parts catalog: bulk import and description lookup."""

import csv
import io
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from openpyxl import load_workbook
from sqlalchemy.ext.asyncio import AsyncSession

from rackbox.database import upsert_statement
from rackbox.models import MasterPart

logger = logging.getLogger(__name__)

# Allowed catalog file extensions
ALLOWED_EXTENSIONS = {"csv", "xlsx"}

# Rows per INSERT statement; keeps SQLite under its bound-parameter limit
UPSERT_CHUNK_SIZE = 500


def _cell_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


async def bulk_import(session: AsyncSession, rows: Iterable[Sequence[Any]]) -> int:
    """Upsert catalog rows, replacing existing descriptions.

    The first row is a header and is discarded. Each later row needs at least
    two fields, ``(part_number, description)``; shorter rows are skipped.
    When a part number repeats, the last row wins.

    Returns:
        Number of rows upserted.
    """
    descriptions: dict[str, str] = {}
    count = 0

    for line_no, row in enumerate(rows):
        if line_no == 0:
            continue
        if len(row) < 2:
            logger.debug("Skipping catalog row %d: fewer than two fields", line_no)
            continue
        descriptions[_cell_text(row[0])] = _cell_text(row[1])
        count += 1

    values = [
        {"part_number": part_number, "description": description}
        for part_number, description in descriptions.items()
    ]

    try:
        for start in range(0, len(values), UPSERT_CHUNK_SIZE):
            await session.execute(
                upsert_statement(
                    session,
                    MasterPart,
                    values[start:start + UPSERT_CHUNK_SIZE],
                    index_elements=["part_number"],
                    update_columns=["description"],
                )
            )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("Catalog import: %d rows upserted, %d distinct parts", count, len(values))
    return count


async def describe(session: AsyncSession, part_number: str) -> str | None:
    """Catalog description for a part, or None if it is not cataloged."""
    part = await session.get(MasterPart, part_number)
    return part.description if part else None


def parse_csv_rows(file_content: bytes) -> list[list[str]]:
    """Split CSV content into raw rows, header included.

    Tries UTF-8 first (with or without BOM) and falls back to Latin-1.
    """
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            text = file_content.decode(encoding)
            break
        except UnicodeDecodeError:
            continue

    return [row for row in csv.reader(io.StringIO(text)) if row]


def parse_xlsx_rows(file_content: bytes) -> list[list[str]]:
    """Read the first sheet of an XLSX workbook into raw rows, header included.

    Trailing empty cells are dropped so a row only counts the fields it has.
    """
    wb = load_workbook(filename=io.BytesIO(file_content), read_only=True, data_only=True)
    try:
        ws = wb.active
        if ws is None:
            raise ValueError("XLSX file has no worksheets")

        rows: list[list[str]] = []
        for row_values in ws.iter_rows(values_only=True):
            values = list(row_values)
            while values and (values[-1] is None or _cell_text(values[-1]) == ""):
                values.pop()
            if values:
                rows.append([_cell_text(v) for v in values])
        return rows
    finally:
        wb.close()


def read_catalog_file(file_content: bytes, filename: str | None) -> list[list[str]]:
    """Turn an uploaded catalog file into rows for ``bulk_import``.

    Raises:
        ValueError: If the file type is not supported.
    """
    ext = Path(filename or "").suffix.lower().lstrip(".")
    if ext not in ALLOWED_EXTENSIONS:
        raise ValueError(f"Unsupported file type '.{ext}'. Allowed: CSV, XLSX")

    if ext == "csv":
        return parse_csv_rows(file_content)
    return parse_xlsx_rows(file_content)
