"""Excel (.xlsx) rendering of exported rows using openpyxl.

The workbook holds a single sheet: a header row taken from the first row's
keys followed by one worksheet row per exported row. Strings made only of
ASCII digits (equipment codes, postal codes, ...) are stored as text so the
reader does not turn "007" into 7. The sheet is written in openpyxl's
write-only mode so large tables are not held in memory.
"""

from __future__ import annotations

import logging
import re
from typing import Any, BinaryIO, Iterable, List, Mapping, Optional

from openpyxl import Workbook
from openpyxl.cell import WriteOnlyCell
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE, TYPE_STRING, Cell
from openpyxl.utils import get_column_letter
from openpyxl.worksheet._write_only import WriteOnlyWorksheet

from backend.app.services.exports.sinks import ensure_writable, write_notice

logger = logging.getLogger(__name__)

ERROR_NOTICE = "An error occurred while generating the Excel file. Please check the system logs."
EMPTY_NOTICE = "No data available in table {table_name}."
TEXT_FORMAT = "@"
MAX_COLUMN_WIDTH = 60

_DIGITS_ONLY = re.compile(r"[0-9]+\Z")


def is_digit_string(value: Any) -> bool:
    """True for ``str`` values made solely of ASCII digits."""
    return isinstance(value, str) and bool(_DIGITS_ONLY.match(value))


def _clean(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


class SpreadsheetSerializer:
    """Stream rows into a one sheet write-only workbook and save it to a stream.

    Rows go straight to openpyxl's write-only sheet, so memory stays bounded
    by the row batch rather than the table. Column widths have to be declared
    before the first row is appended; they are taken from the header and the
    first data row.
    """

    def __init__(self, table_name: str, sheet_title: str = "Dades") -> None:
        self.table_name = table_name
        self.sheet_title = sheet_title

    def build_workbook(self, rows: Iterable[Mapping[str, Any]]) -> Workbook:
        workbook = Workbook(write_only=True)
        sheet = workbook.create_sheet(title=self.sheet_title)

        headers: Optional[List[str]] = None
        try:
            for row in rows:
                if headers is None:
                    headers = list(row.keys())
                    self._fit_columns(sheet, headers, row)
                    sheet.append([self._cell(sheet, header) for header in headers])
                sheet.append([self._cell(sheet, row.get(header, "")) for header in headers])
        finally:
            close = getattr(rows, "close", None)
            if callable(close):
                close()

        if headers is None:
            sheet.append([EMPTY_NOTICE.format(table_name=self.table_name)])
        return workbook

    def serialize(self, rows: Iterable[Mapping[str, Any]], sink: BinaryIO) -> None:
        """Write the workbook for ``rows`` to the binary stream ``sink``.

        Raises:
            SinkError: if ``sink`` cannot be written to at all.
        """
        ensure_writable(sink)
        try:
            workbook = self.build_workbook(rows)
            workbook.save(sink)
        except Exception:
            logger.exception("Error generating Excel export from %s", self.table_name)
            write_notice(sink, ERROR_NOTICE)

    @staticmethod
    def _cell(sheet: WriteOnlyWorksheet, value: Any) -> Cell:
        value = _clean(value)
        cell = WriteOnlyCell(sheet, value=value)
        if is_digit_string(value):
            cell.data_type = TYPE_STRING
            cell.number_format = TEXT_FORMAT
        return cell

    @staticmethod
    def _fit_columns(sheet: WriteOnlyWorksheet, headers: List[str], first_row: Mapping[str, Any]) -> None:
        for column, header in enumerate(headers, start=1):
            width = max(len(str(header)), len(str(_clean(first_row.get(header, "")))))
            dimension = sheet.column_dimensions[get_column_letter(column)]
            dimension.auto_size = True
            dimension.width = min(width + 2, MAX_COLUMN_WIDTH)
