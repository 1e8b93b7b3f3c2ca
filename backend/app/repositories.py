"""Repository pattern for database operations.

This module provides the repository used by the export endpoints to read the
submitted form data. Repositories accept an explicit database handle so the
export layer can be built and tested without a live MongoDB; without one
they fall back to the request scoped connection from ``db.get_db()``.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterator, Optional

from bson import ObjectId
from bson.decimal128 import Decimal128
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from backend.app import db
from backend.app.services.exports.errors import DataAccessError

Row = Dict[str, Any]


class BaseRepository:
    """Base repository class bound to one collection."""

    def __init__(self, collection_name: str, database: Optional[Database] = None):
        """Initialize repository with collection name and an optional database handle.

        Args:
            collection_name: Name of the MongoDB collection
            database: PyMongo database (or any object supporting ``db[name]``).
                When omitted the request scoped database from ``db.get_db()``
                is used, resolved on first access.
        """
        self.collection_name = collection_name
        self._database = database

    @property
    def database(self) -> Database:
        if self._database is None:
            self._database = db.get_db()
        return self._database

    @property
    def collection(self) -> Collection:
        return self.database[self.collection_name]


def to_scalar(value: Any) -> Any:
    """Flatten a BSON value into something a CSV field or a cell can hold."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal128):
        return str(value.to_decimal())
    if isinstance(value, Decimal):
        return str(value)
    return str(value)


class RowSource(BaseRepository):
    """Full, unordered read of the export collection as flat rows."""

    def __init__(self, collection_name: str, database: Optional[Database] = None, *, include_id: bool = True, batch_size: int = 500):
        super().__init__(collection_name, database)
        self.include_id = include_id
        self.batch_size = batch_size

    def fetch(self, table_name: Optional[str] = None) -> Iterator[Row]:
        """Yield every document of ``table_name`` (default: the bound collection).

        The generator is single pass: it walks one driver cursor and closes it
        when exhausted or when the consumer stops early. Driver failures, on
        the initial query or mid-iteration, surface as ``DataAccessError``.
        """
        name = table_name or self.collection_name
        projection = None if self.include_id else {'_id': False}
        try:
            collection = self.database[name] if table_name else self.collection
            cursor = collection.find({}, projection, batch_size=self.batch_size)
        except (PyMongoError, db.DatabaseError) as e:
            raise DataAccessError(f"Could not query {name}: {e}") from e

        try:
            for document in cursor:
                yield {key: to_scalar(value) for key, value in document.items()}
        except PyMongoError as e:
            raise DataAccessError(f"Could not read {name}: {e}") from e
        finally:
            cursor.close()
