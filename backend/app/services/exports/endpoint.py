"""Export operations behind the /csv routes.

``ExportEndpoint`` ties the pieces together: role gate, row source,
serializer and download headers. It receives the caller and the request
details explicitly so the routes stay thin and the operations can be driven
from tests without JWT plumbing.
"""

from __future__ import annotations

import tempfile
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from flask import Response, current_app, jsonify, render_template, request, stream_with_context
from pymongo.database import Database
from werkzeug.wsgi import wrap_file

from backend.app.repositories import RowSource
from backend.app.services.exports.authorization import (
    EXPORT_ROLES,
    Principal,
    is_export_allowed,
)
from backend.app.services.exports.csv_serializer import CsvSerializer
from backend.app.services.exports.errors import AuthorizationError
from backend.app.services.exports.spreadsheet_serializer import SpreadsheetSerializer

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_CONTENT_TYPE = "text/csv; charset=utf-8"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
# Workbooks larger than this spill from memory to a temporary file
SPOOL_MAX_BYTES = 8 * 1024 * 1024

LANDING_DENIED = "You do not have permission to access this page."
DOWNLOAD_DENIED = "You do not have permission to download this file."


def export_filename(prefix: str, extension: str, now: Optional[datetime] = None) -> str:
    """e.g. ``dades_formulari_20240131_235959.csv``"""
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    return f"{prefix}_{stamp}.{extension}"


def _attachment(filename: str) -> str:
    return f'attachment; filename="{filename}"'


class ExportEndpoint:
    """Landing page and file downloads for one export collection."""

    def __init__(
        self,
        table_name: str,
        database: Optional[Database] = None,
        *,
        allowed_roles: Iterable[str] = EXPORT_ROLES,
        include_id: bool = True,
        batch_size: int = 500,
        sheet_title: str = "Dades",
    ) -> None:
        self.table_name = table_name
        self.allowed_roles = frozenset(allowed_roles)
        self.row_source = RowSource(table_name, database, include_id=include_id, batch_size=batch_size)
        self.csv_serializer = CsvSerializer()
        self.spreadsheet_serializer = SpreadsheetSerializer(table_name, sheet_title=sheet_title)

    def authorize(self, principal: Principal, message: str = LANDING_DENIED) -> None:
        if not is_export_allowed(principal.roles, self.allowed_roles):
            raise AuthorizationError(message)

    def show_landing_page(self, principal: Principal, base_path: str = ""):
        try:
            self.authorize(principal, LANDING_DENIED)
        except AuthorizationError as error:
            return self._forbidden(error)

        base_path = base_path.rstrip("/")
        return render_template(
            "exports/landing.html",
            url_excel=f"{base_path}/csv/download-excel",
            url_csv=f"{base_path}/csv/download-csv",
            table_name=self.table_name,
        )

    def download_spreadsheet(self, principal: Principal, now: Optional[datetime] = None):
        try:
            self.authorize(principal, DOWNLOAD_DENIED)
        except AuthorizationError as error:
            return self._forbidden(error)

        filename = export_filename("dades_equipaments", "xlsx", now)
        sink = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_BYTES)
        self.spreadsheet_serializer.serialize(self.row_source.fetch(), sink)
        sink.seek(0)

        response = Response(wrap_file(request.environ, sink), content_type=XLSX_MIMETYPE)
        response.headers["Content-Disposition"] = _attachment(filename)
        response.headers["Cache-Control"] = "max-age=0"
        response.headers["Pragma"] = "public"
        return response

    def download_csv(self, principal: Principal, now: Optional[datetime] = None):
        try:
            self.authorize(principal, DOWNLOAD_DENIED)
        except AuthorizationError as error:
            return self._forbidden(error)

        filename = export_filename("dades_formulari", "csv", now)
        body = self.csv_serializer.iter_chunks(self.row_source.fetch())

        response = Response(stream_with_context(body), content_type=CSV_CONTENT_TYPE)
        response.headers["Content-Disposition"] = _attachment(filename)
        response.headers["Cache-Control"] = "private, no-cache, must-revalidate"
        response.headers["Pragma"] = "private"
        response.headers["Expires"] = "0"
        return response

    @staticmethod
    def _forbidden(error: AuthorizationError):
        return jsonify({"error": error.code, "message": error.message}), error.status


def create_export_endpoint(
    settings: Optional[Mapping[str, Any]] = None,
    database: Optional[Database] = None,
) -> ExportEndpoint:
    """Build an endpoint from application settings (defaults to ``current_app.config``).

    Without ``database`` the request scoped connection is opened lazily, on
    the first row fetch, so refused callers never reach MongoDB.
    """
    settings = settings if settings is not None else current_app.config
    return ExportEndpoint(
        settings["EXPORT_COLLECTION"],
        database,
        allowed_roles=settings.get("EXPORT_ALLOWED_ROLES", EXPORT_ROLES),
        include_id=settings.get("EXPORT_INCLUDE_ID", True),
        batch_size=settings.get("EXPORT_BATCH_SIZE", 500),
        sheet_title=settings.get("EXPORT_SHEET_TITLE", "Dades"),
    )
