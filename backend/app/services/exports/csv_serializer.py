"""CSV rendering of exported rows.

Output is UTF-8 with a leading byte order mark so spreadsheet tools pick the
right encoding. The header comes from the first row's keys; every record is
written in that column order.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Any, BinaryIO, Iterable, Iterator, List, Mapping, Optional

from backend.app.services.exports.sinks import ensure_writable

logger = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"
ERROR_NOTICE = "An error occurred while generating the CSV file. Please check the system logs."


def _field(value: Any) -> Any:
    return "" if value is None else value


class CsvSerializer:
    """Stream rows as comma separated records."""

    encoding = "utf-8"

    def iter_chunks(self, rows: Iterable[Mapping[str, Any]]) -> Iterator[bytes]:
        """Yield the encoded file piece by piece: BOM, then one chunk per record.

        A failure while reading rows is logged and ends the output with a
        diagnostic line; what was already yielded stays in place.
        """
        yield UTF8_BOM

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\r\n")
        header: Optional[List[str]] = None
        try:
            for row in rows:
                if header is None:
                    header = list(row.keys())
                    writer.writerow(header)
                writer.writerow([_field(row.get(column, "")) for column in header])
                yield self._drain(buffer)
        except Exception:
            logger.exception("Error generating CSV export")
            yield (ERROR_NOTICE + "\r\n").encode(self.encoding)
        finally:
            close = getattr(rows, "close", None)
            if callable(close):
                close()

    def serialize(self, rows: Iterable[Mapping[str, Any]], sink: BinaryIO) -> None:
        """Write the CSV file for ``rows`` to the binary stream ``sink``.

        Raises:
            SinkError: if ``sink`` cannot be written to at all. Nothing is
                consumed from ``rows`` in that case.
        """
        ensure_writable(sink)
        chunks = self.iter_chunks(rows)
        try:
            for chunk in chunks:
                sink.write(chunk)
        except (OSError, ValueError) as exc:
            logger.error("CSV export aborted, output stream failed: %s", exc)
        finally:
            chunks.close()

    def _drain(self, buffer: io.StringIO) -> bytes:
        data = buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
        return data.encode(self.encoding)
