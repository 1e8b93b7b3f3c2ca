"""Shared fixtures: an in-memory stand-in for the MongoDB handle and a test app."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
from flask import Flask

from backend.app import create_app
from backend.app.config import TestingConfig


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]], fail_after: Optional[int] = None, error: Optional[Exception] = None):
        self._documents = documents
        self._fail_after = fail_after
        self._error = error
        self.closed = False

    def __iter__(self):
        for index, document in enumerate(self._documents):
            if self._fail_after is not None and index >= self._fail_after:
                raise self._error
            yield dict(document)
        if self._fail_after is not None and self._fail_after >= len(self._documents):
            raise self._error

    def close(self) -> None:
        self.closed = True


class FakeCollection:
    def __init__(self, documents: List[Dict[str, Any]], **cursor_options: Any):
        self.documents = documents
        self.cursor_options = cursor_options
        self.find_calls: List[tuple] = []
        self.cursors: List[FakeCursor] = []

    def find(self, filter_dict=None, projection=None, **kwargs):
        self.find_calls.append((filter_dict, projection, kwargs))
        documents = self.documents
        if projection and projection.get('_id') is False:
            documents = [{k: v for k, v in doc.items() if k != '_id'} for doc in documents]
        cursor = FakeCursor(documents, **self.cursor_options)
        self.cursors.append(cursor)
        return cursor


class FakeDatabase:
    def __init__(self, collections: Optional[Dict[str, FakeCollection]] = None):
        self.collections = collections or {}
        self.accessed: List[str] = []

    def __getitem__(self, name: str) -> FakeCollection:
        self.accessed.append(name)
        return self.collections.setdefault(name, FakeCollection([]))

    @property
    def find_calls(self) -> int:
        return sum(len(collection.find_calls) for collection in self.collections.values())


@pytest.fixture(name="make_db")
def fixture_make_db():
    def _make(documents: List[Dict[str, Any]], name: str = "forms", **cursor_options: Any) -> FakeDatabase:
        return FakeDatabase({name: FakeCollection(documents, **cursor_options)})

    return _make


@pytest.fixture(name="app")
def fixture_app() -> Flask:
    class _Config(TestingConfig):
        JWT_SECRET_KEY = "test-secret-key"
        EXPORT_COLLECTION = "forms"

    return create_app(_Config)


@pytest.fixture(name="client")
def fixture_client(app: Flask):
    return app.test_client()
