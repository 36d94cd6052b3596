# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""
Read and write operations behind the HTTP endpoints.

Every function takes the raw request values (strings, possibly missing),
validates them and returns the JSON body for a successful response. Invalid
input raises ClientInputError; storage errors propagate unchanged.
"""

from typing import Any, Callable, Optional, Sequence

from backend.db import DbClient
from shared.constants import (
    ALL_CATEGORIES,
    DEFAULT_CATEGORY,
    FACTS_PAGE_SIZE,
    FAVORITES_PAGE_SIZE,
    MAX_PAGE_SIZE,
    SHARED_FAVORITES_PAGE_SIZE,
)
from shared.errors import ClientInputError
from shared.types import FavoriteRecord
from shared.utils import MAX_MILLIS, to_millis


def parse_page_size(raw: Any, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        page_size = int(raw)
    except (TypeError, ValueError):
        raise ClientInputError("pageSize must be a positive integer")
    if page_size < 1:
        raise ClientInputError("pageSize must be a positive integer")
    return min(page_size, MAX_PAGE_SIZE)


def parse_cursor(raw: Any) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        cursor = int(raw)
    except (TypeError, ValueError):
        raise ClientInputError("cursor must be a millisecond timestamp")
    if not 0 <= cursor <= MAX_MILLIS:
        raise ClientInputError("cursor must be a millisecond timestamp")
    return cursor


def _category_filter(category: Optional[str]) -> Optional[str]:
    if not category or category == ALL_CATEGORIES:
        return None
    return category


def _filter_by_text(items: list[dict], q: Optional[str]) -> list[dict]:
    """Case-insensitive substring match over fact and explanation."""
    needle = (q or "").strip().lower()
    if not needle:
        return items
    return [
        item
        for item in items
        if needle in (item.get("fact") or "").lower()
        or needle in (item.get("explanation") or "").lower()
    ]


def _next_cursor(
    records: Sequence, page_size: int, timestamp_of: Callable[[Any], Any]
) -> Optional[int]:
    # Taken from the unfiltered page so a text filter cannot stall pagination.
    if len(records) < page_size:
        return None
    return to_millis(timestamp_of(records[-1]))


def get_facts(
    db: DbClient,
    *,
    category: Optional[str] = None,
    cursor: Any = None,
    page_size: Any = None,
    q: Optional[str] = None,
) -> dict:
    size = parse_page_size(page_size, FACTS_PAGE_SIZE)
    records = db.list_facts(
        limit=size, category=_category_filter(category), before_ms=parse_cursor(cursor)
    )
    return {
        "facts": _filter_by_text([r.as_dict() for r in records], q),
        "nextCursor": _next_cursor(records, size, lambda r: r.created_at),
    }


def get_latest_fact(db: DbClient) -> dict:
    records = db.list_facts(limit=1)
    if not records:
        return {"fact": None}
    return records[0].as_dict()


def get_favorites(
    db: DbClient,
    *,
    token: Optional[str],
    category: Optional[str] = None,
    cursor: Any = None,
    page_size: Any = None,
    q: Optional[str] = None,
) -> dict:
    if not token:
        raise ClientInputError("token is required")
    size = parse_page_size(page_size, FAVORITES_PAGE_SIZE)
    records = db.list_favorites(
        token,
        limit=size,
        category=_category_filter(category),
        before_ms=parse_cursor(cursor),
    )
    return {
        "items": _filter_by_text([r.as_dict() for r in records], q),
        "nextCursor": _next_cursor(records, size, lambda r: r.saved_at),
    }


def get_shared_favorites(
    db: DbClient,
    *,
    user: Optional[str],
    cursor: Any = None,
    page_size: Any = None,
) -> dict:
    """A read-only view of another subscriber's favorites, keyed by their token."""
    if not user:
        raise ClientInputError("User ID required")
    size = parse_page_size(page_size, SHARED_FAVORITES_PAGE_SIZE)
    records = db.list_favorites(user, limit=size, before_ms=parse_cursor(cursor))
    return {
        "favorites": [r.as_dict() for r in records],
        "nextCursor": _next_cursor(records, size, lambda r: r.saved_at),
    }


def save_favorite(
    db: DbClient,
    *,
    token: Optional[str],
    fact_id: Optional[str],
    fact: Optional[str],
    explanation: Optional[str] = None,
    category: Optional[str] = None,
) -> dict:
    if not token or not fact_id or not fact:
        raise ClientInputError("Missing required fields")
    db.save_favorite(
        token,
        FavoriteRecord(
            id=fact_id, fact=fact, explanation=explanation, category=category
        ),
    )
    return {"message": "Favorite saved"}


def remove_favorite(
    db: DbClient, *, token: Optional[str], fact_id: Optional[str]
) -> dict:
    if not token or not fact_id:
        raise ClientInputError("Missing token or factId")
    db.remove_favorite(token, fact_id)
    return {"message": "Favorite removed"}


def save_token(
    db: DbClient, *, token: Optional[str], category: Optional[str] = None
) -> dict:
    if not token:
        raise ClientInputError("Token required")
    db.save_token(token, category or DEFAULT_CATEGORY)
    return {"message": "Token saved successfully"}
