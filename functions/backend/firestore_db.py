"""
Cloud Firestore implementation of the DbClient interface.

Collection layout:
  facts/{factId}
  favorites/{token}/items/{factId}
  tokens/{token}
  error_logs/{logId}
"""

from __future__ import annotations

from typing import Any, Optional, Type, TypeVar

from dacite import Config, from_dict
from google.cloud.firestore_v1 import SERVER_TIMESTAMP, Query
from google.cloud.firestore_v1.base_query import FieldFilter

from shared.firebase_constants import (
    ERROR_LOGS_COLLECTION,
    FACTS_COLLECTION,
    FAVORITE_ITEMS_COLLECTION,
    FAVORITES_COLLECTION,
    TOKENS_COLLECTION,
)
from shared.json_utils import convert_keys
from shared.types import ErrorLogRecord, FactRecord, FavoriteRecord, TokenRecord
from shared.utils import from_millis

T = TypeVar("T")


def _from_snapshot(data_class: Type[T], snapshot: Any, id_field: str) -> T:
    data = convert_keys(snapshot.to_dict() or {}, "camel_to_snake")
    data[id_field] = snapshot.id
    return from_dict(data_class=data_class, data=data, config=Config(check_types=False))


def _paginate(query, order_field: str, limit: Optional[int], before_ms: Optional[int]):
    query = query.order_by(order_field, direction=Query.DESCENDING)
    if before_ms is not None:
        query = query.start_after({order_field: from_millis(before_ms)})
    if limit is not None:
        query = query.limit(limit)
    return query


class FirestoreDbClient:
    """DbClient backed by a google.cloud.firestore Client."""

    def __init__(self, client):
        self.client = client

    def _favorite_items(self, token: str):
        return (
            self.client.collection(FAVORITES_COLLECTION)
            .document(token)
            .collection(FAVORITE_ITEMS_COLLECTION)
        )

    def add_fact(self, fact: FactRecord) -> str:
        doc_data = {
            "fact": fact.fact,
            "explanation": fact.explanation,
            "category": fact.category,
            "createdAt": fact.created_at or SERVER_TIMESTAMP,
            "rawAI": fact.raw_ai,
        }
        if fact.full_fact:
            doc_data["fullFact"] = fact.full_fact
        _, doc_ref = self.client.collection(FACTS_COLLECTION).add(doc_data)
        return doc_ref.id

    def list_facts(
        self,
        *,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        before_ms: Optional[int] = None,
    ) -> list[FactRecord]:
        query = self.client.collection(FACTS_COLLECTION)
        if category is not None:
            query = query.where(filter=FieldFilter("category", "==", category))
        query = _paginate(query, "createdAt", limit, before_ms)
        return [_from_snapshot(FactRecord, snap, "id") for snap in query.stream()]

    def save_favorite(self, token: str, favorite: FavoriteRecord) -> None:
        self._favorite_items(token).document(favorite.id).set(
            {
                "fact": favorite.fact,
                "explanation": favorite.explanation,
                "category": favorite.category,
                "savedAt": favorite.saved_at or SERVER_TIMESTAMP,
            }
        )

    def remove_favorite(self, token: str, fact_id: str) -> None:
        self._favorite_items(token).document(fact_id).delete()

    def list_favorites(
        self,
        token: str,
        *,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        before_ms: Optional[int] = None,
    ) -> list[FavoriteRecord]:
        query = self._favorite_items(token)
        if category is not None:
            query = query.where(filter=FieldFilter("category", "==", category))
        query = _paginate(query, "savedAt", limit, before_ms)
        return [_from_snapshot(FavoriteRecord, snap, "id") for snap in query.stream()]

    def save_token(self, token: str, category: str) -> None:
        self.client.collection(TOKENS_COLLECTION).document(token).set(
            {"category": category, "updatedAt": SERVER_TIMESTAMP}
        )

    def list_tokens(self) -> list[TokenRecord]:
        return [
            _from_snapshot(TokenRecord, snap, "token")
            for snap in self.client.collection(TOKENS_COLLECTION).stream()
        ]

    def add_error_log(self, record: ErrorLogRecord) -> None:
        self.client.collection(ERROR_LOGS_COLLECTION).add(
            {
                "context": record.context,
                "errorMessage": record.error_message,
                "stack": record.stack,
                "createdAt": record.created_at or SERVER_TIMESTAMP,
            }
        )
