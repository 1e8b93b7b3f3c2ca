"""Tests covering the /csv export routes.

Focus on role enforcement, download headers and that refused callers never
reach the database. MongoDB is replaced by the in-memory fake from conftest.
"""

from __future__ import annotations

import io
import re
from typing import Dict

import pytest
from flask import Flask
from flask_jwt_extended import create_access_token
from openpyxl import load_workbook

import backend.app.blueprints.exports.routes as exports_module
from backend.app.services.exports.endpoint import create_export_endpoint

ROWS = [
    {"id": "1", "code": "007", "name": "Alpha"},
    {"id": "2", "code": "12", "name": "Beta"},
]


@pytest.fixture(name="database")
def fixture_database(make_db, monkeypatch):
    database = make_db(ROWS)
    monkeypatch.setattr(
        exports_module,
        "create_export_endpoint",
        lambda: create_export_endpoint(database=database),
    )
    return database


def _auth_header(app: Flask, **claims) -> Dict[str, str]:
    with app.app_context():
        token = create_access_token(identity="user-1", additional_claims=claims)
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.parametrize("path", ["/csv", "/csv/download-excel", "/csv/download-csv"])
def test_anonymous_is_forbidden(client, database, path) -> None:
    response = client.get(path)
    assert response.status_code == 403
    assert response.get_json()["error"] == "forbidden"
    assert database.find_calls == 0


@pytest.mark.parametrize("path", ["/csv", "/csv/download-excel", "/csv/download-csv"])
@pytest.mark.parametrize("claims", [{"role": "user"}, {"roles": ["authenticated", "editor"]}, {}])
def test_other_roles_are_forbidden(app, client, database, path, claims) -> None:
    response = client.get(path, headers=_auth_header(app, **claims))
    assert response.status_code == 403
    assert response.get_json()["message"]
    assert database.find_calls == 0


def test_landing_page_links(app, client, database) -> None:
    response = client.get("/csv", headers=_auth_header(app, roles=["gestor"]))
    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert 'href="/csv/download-excel"' in body
    assert 'href="/csv/download-csv"' in body
    assert database.find_calls == 0


def test_landing_page_respects_script_root(app, client, database) -> None:
    response = client.get(
        "/csv",
        headers=_auth_header(app, role="administrator"),
        environ_overrides={"SCRIPT_NAME": "/equipaments"},
    )
    body = response.get_data(as_text=True)
    assert 'href="/equipaments/csv/download-excel"' in body
    assert 'href="/equipaments/csv/download-csv"' in body


def test_download_csv(app, client, database) -> None:
    response = client.get("/csv/download-csv", headers=_auth_header(app, role="administrator"))
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "text/csv; charset=utf-8"
    assert re.fullmatch(
        r'attachment; filename="dades_formulari_\d{8}_\d{6}\.csv"',
        response.headers["Content-Disposition"],
    )
    assert response.headers["Cache-Control"] == "private, no-cache, must-revalidate"
    assert response.headers["Pragma"] == "private"
    assert response.headers["Expires"] == "0"
    assert response.data == b"\xef\xbb\xbfid,code,name\r\n1,007,Alpha\r\n2,12,Beta\r\n"
    assert database.collections["forms"].cursors[0].closed


def test_download_excel(app, client, database) -> None:
    response = client.get("/csv/download-excel", headers=_auth_header(app, roles=["gestor"]))
    assert response.status_code == 200
    assert response.headers["Content-Type"] == (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert re.fullmatch(
        r'attachment; filename="dades_equipaments_\d{8}_\d{6}\.xlsx"',
        response.headers["Content-Disposition"],
    )
    assert response.headers["Cache-Control"] == "max-age=0"
    assert response.headers["Pragma"] == "public"

    sheet = load_workbook(io.BytesIO(response.data)).active
    assert [cell.value for cell in sheet[1]] == ["id", "code", "name"]
    assert sheet["B2"].value == "007"
    assert sheet["B2"].data_type == "s"


def test_download_csv_with_empty_table(app, client, make_db, monkeypatch) -> None:
    database = make_db([])
    monkeypatch.setattr(
        exports_module,
        "create_export_endpoint",
        lambda: create_export_endpoint(database=database),
    )
    response = client.get("/csv/download-csv", headers=_auth_header(app, role="gestor"))
    assert response.status_code == 200
    assert response.data == b"\xef\xbb\xbf"


def test_health_reports_degraded_database(client, monkeypatch) -> None:
    monkeypatch.setattr(
        "backend.app.db.health_check",
        lambda: {"status": "unhealthy", "error": "Database connection failed"},
    )
    body = client.get("/api/health").get_json()
    assert body["status"] == "degraded"
    assert body["database"]["status"] == "unhealthy"
