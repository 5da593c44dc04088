# backend/coffeevan/services/document_store.py
"""
Document store over SQLAlchemy.

Keyed collections with CRUD access, the narrow interface the booking,
settings and checkout services depend on:

  get(collection, id)         → row | None
  query(collection, **eq)     → [row, ...]
  add(collection, doc)        → row (flushed, id assigned)
  set(collection, id, doc)    → row (upsert)
  delete(collection, id)      → bool

Collections: products, orders, timeSlots, settings.
List/dict values of JSON columns are encoded as text on write.
Database errors surface as BackendUnavailable; nothing is committed here.
"""

import json
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import BackendUnavailable
from ..models.generated import (
    Orders as DBOrders,
    Products as DBProducts,
    ShopSettingsDoc as DBSettings,
    TimeSlots as DBTimeSlots,
)

logger = logging.getLogger(__name__)


COLLECTIONS = {
    "products": DBProducts,
    "orders": DBOrders,
    "timeSlots": DBTimeSlots,
    "settings": DBSettings,
}


def _encode(doc: dict[str, Any]) -> dict[str, Any]:
    return {
        key: json.dumps(value) if isinstance(value, (list, dict)) else value
        for key, value in doc.items()
    }


class DocumentStore:
    """Collection-keyed CRUD on top of a request-scoped Session."""

    def __init__(self, db: Session):
        self.db = db

    def _model(self, collection: str):
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def get(self, collection: str, id):
        model = self._model(collection)
        try:
            return self.db.get(model, id)
        except SQLAlchemyError as e:
            logger.error(f"Document store read failed: {collection}/{id}: {e}")
            raise BackendUnavailable("Store temporarily unavailable") from e

    def query(self, collection: str, **filters) -> list:
        model = self._model(collection)
        try:
            q = self.db.query(model)
            for field, value in filters.items():
                q = q.filter(getattr(model, field) == value)
            return q.all()
        except SQLAlchemyError as e:
            logger.error(f"Document store query failed: {collection} {filters}: {e}")
            raise BackendUnavailable("Store temporarily unavailable") from e

    def add(self, collection: str, doc: dict[str, Any]):
        model = self._model(collection)
        obj = model(**_encode(doc))
        try:
            self.db.add(obj)
            self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Document store write failed: {collection}: {e}")
            raise BackendUnavailable("Store temporarily unavailable") from e
        return obj

    def set(self, collection: str, id, doc: dict[str, Any]):
        model = self._model(collection)
        try:
            obj = self.db.get(model, id)
            if obj is None:
                obj = model(id=id, **_encode(doc))
                self.db.add(obj)
            else:
                for field, value in _encode(doc).items():
                    setattr(obj, field, value)
            self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Document store write failed: {collection}/{id}: {e}")
            raise BackendUnavailable("Store temporarily unavailable") from e
        return obj

    def delete(self, collection: str, id) -> bool:
        model = self._model(collection)
        try:
            obj = self.db.get(model, id)
            if obj is None:
                return False
            self.db.delete(obj)
            self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Document store delete failed: {collection}/{id}: {e}")
            raise BackendUnavailable("Store temporarily unavailable") from e
        return True
