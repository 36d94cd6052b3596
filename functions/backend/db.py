"""
Database abstraction for SQL (Postgres) and an in-memory test implementation.

The Firestore implementation lives in backend.firestore_db.
"""

from __future__ import annotations

import copy
from dataclasses import replace
from typing import Dict, Optional, Protocol

from sqlalchemy import JSON, BigInteger, Column, String, Text, create_engine, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shared.types import ErrorLogRecord, FactRecord, FavoriteRecord, TokenRecord
from shared.utils import from_millis, get_unique_id, to_millis, utc_now


class DbClient(Protocol):
    """Interface for database access.

    `before_ms` is a pagination cursor: only items strictly older than that
    millisecond timestamp are returned. Lists are newest first.
    """

    def add_fact(self, fact: FactRecord) -> str:
        ...

    def list_facts(
        self,
        *,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        before_ms: Optional[int] = None,
    ) -> list[FactRecord]:
        ...

    def save_favorite(self, token: str, favorite: FavoriteRecord) -> None:
        ...

    def remove_favorite(self, token: str, fact_id: str) -> None:
        ...

    def list_favorites(
        self,
        token: str,
        *,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        before_ms: Optional[int] = None,
    ) -> list[FavoriteRecord]:
        ...

    def save_token(self, token: str, category: str) -> None:
        ...

    def list_tokens(self) -> list[TokenRecord]:
        ...

    def add_error_log(self, record: ErrorLogRecord) -> None:
        ...


def _page(items: list, limit: Optional[int]) -> list:
    return items if limit is None else items[:limit]


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.facts: Dict[str, FactRecord] = {}
        self.favorites: Dict[str, Dict[str, FavoriteRecord]] = {}
        self.tokens: Dict[str, TokenRecord] = {}
        self.error_logs: list[ErrorLogRecord] = []

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.facts.clear()
        self.favorites.clear()
        self.tokens.clear()
        self.error_logs.clear()

    def add_fact(self, fact: FactRecord) -> str:
        fact_id = get_unique_id()
        self.facts[fact_id] = replace(
            fact, id=fact_id, created_at=fact.created_at or utc_now()
        )
        return fact_id

    def list_facts(
        self,
        *,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        before_ms: Optional[int] = None,
    ) -> list[FactRecord]:
        facts = [
            f
            for f in self.facts.values()
            if (category is None or f.category == category)
            and (before_ms is None or to_millis(f.created_at) < before_ms)
        ]
        facts.sort(key=lambda f: f.created_at, reverse=True)
        return [copy.copy(f) for f in _page(facts, limit)]

    def save_favorite(self, token: str, favorite: FavoriteRecord) -> None:
        self.favorites.setdefault(token, {})[favorite.id] = replace(
            favorite, saved_at=favorite.saved_at or utc_now()
        )

    def remove_favorite(self, token: str, fact_id: str) -> None:
        self.favorites.get(token, {}).pop(fact_id, None)

    def list_favorites(
        self,
        token: str,
        *,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        before_ms: Optional[int] = None,
    ) -> list[FavoriteRecord]:
        items = [
            f
            for f in self.favorites.get(token, {}).values()
            if (category is None or f.category == category)
            and (before_ms is None or to_millis(f.saved_at) < before_ms)
        ]
        items.sort(key=lambda f: f.saved_at, reverse=True)
        return [copy.copy(f) for f in _page(items, limit)]

    def save_token(self, token: str, category: str) -> None:
        self.tokens[token] = TokenRecord(
            token=token, category=category, updated_at=utc_now()
        )

    def list_tokens(self) -> list[TokenRecord]:
        return list(self.tokens.values())

    def add_error_log(self, record: ErrorLogRecord) -> None:
        self.error_logs.append(
            replace(record, created_at=record.created_at or utc_now())
        )


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    Timestamps are stored as integer milliseconds since the epoch, the same
    unit as the pagination cursor.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _now_ms() -> int:
        return to_millis(utc_now())

    def _to_fact_record(self, row: "FactRow") -> FactRecord:
        return FactRecord(
            id=row.id,
            fact=row.fact,
            explanation=row.explanation or "",
            category=row.category,
            raw_ai=row.raw_ai or "",
            full_fact=row.full_fact,
            created_at=from_millis(row.created_at),
        )

    def _to_favorite_record(self, row: "FavoriteRow") -> FavoriteRecord:
        return FavoriteRecord(
            id=row.fact_id,
            fact=row.fact,
            explanation=row.explanation,
            category=row.category,
            saved_at=from_millis(row.saved_at),
        )

    def add_fact(self, fact: FactRecord) -> str:
        fact_id = get_unique_id()
        with self.Session() as session:
            session.add(
                FactRow(
                    id=fact_id,
                    fact=fact.fact,
                    full_fact=fact.full_fact,
                    explanation=fact.explanation,
                    category=fact.category,
                    raw_ai=fact.raw_ai,
                    created_at=to_millis(fact.created_at) or self._now_ms(),
                )
            )
            session.commit()
        return fact_id

    def list_facts(
        self,
        *,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        before_ms: Optional[int] = None,
    ) -> list[FactRecord]:
        stmt = select(FactRow)
        if category is not None:
            stmt = stmt.where(FactRow.category == category)
        if before_ms is not None:
            stmt = stmt.where(FactRow.created_at < before_ms)
        stmt = stmt.order_by(FactRow.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_fact_record(row) for row in rows]

    def save_favorite(self, token: str, favorite: FavoriteRecord) -> None:
        saved_at = to_millis(favorite.saved_at) or self._now_ms()
        with self.Session() as session:
            row = session.get(FavoriteRow, (token, favorite.id))
            if row:
                row.fact = favorite.fact
                row.explanation = favorite.explanation
                row.category = favorite.category
                row.saved_at = saved_at
            else:
                session.add(
                    FavoriteRow(
                        token=token,
                        fact_id=favorite.id,
                        fact=favorite.fact,
                        explanation=favorite.explanation,
                        category=favorite.category,
                        saved_at=saved_at,
                    )
                )
            session.commit()

    def remove_favorite(self, token: str, fact_id: str) -> None:
        with self.Session() as session:
            row = session.get(FavoriteRow, (token, fact_id))
            if row:
                session.delete(row)
                session.commit()

    def list_favorites(
        self,
        token: str,
        *,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        before_ms: Optional[int] = None,
    ) -> list[FavoriteRecord]:
        stmt = select(FavoriteRow).where(FavoriteRow.token == token)
        if category is not None:
            stmt = stmt.where(FavoriteRow.category == category)
        if before_ms is not None:
            stmt = stmt.where(FavoriteRow.saved_at < before_ms)
        stmt = stmt.order_by(FavoriteRow.saved_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_favorite_record(row) for row in rows]

    def save_token(self, token: str, category: str) -> None:
        with self.Session() as session:
            row = session.get(TokenRow, token)
            if row:
                row.category = category
                row.updated_at = self._now_ms()
            else:
                session.add(
                    TokenRow(token=token, category=category, updated_at=self._now_ms())
                )
            session.commit()

    def list_tokens(self) -> list[TokenRecord]:
        with self.Session() as session:
            rows = session.execute(select(TokenRow)).scalars().all()
            return [
                TokenRecord(
                    token=row.token,
                    category=row.category,
                    updated_at=from_millis(row.updated_at),
                )
                for row in rows
            ]

    def add_error_log(self, record: ErrorLogRecord) -> None:
        with self.Session() as session:
            session.add(
                ErrorLogRow(
                    id=get_unique_id(),
                    context=record.context,
                    error_message=record.error_message,
                    stack=record.stack,
                    created_at=to_millis(record.created_at) or self._now_ms(),
                )
            )
            session.commit()


Base = declarative_base()


class FactRow(Base):
    __tablename__ = "facts"

    id = Column(String, primary_key=True)
    fact = Column(Text, nullable=False)
    full_fact = Column(Text, nullable=True)
    explanation = Column(Text, nullable=True)
    category = Column(String, nullable=False, index=True)
    raw_ai = Column(Text, nullable=True)
    created_at = Column(BigInteger, nullable=False, index=True)


class FavoriteRow(Base):
    __tablename__ = "favorites"

    token = Column(String, primary_key=True)
    fact_id = Column(String, primary_key=True)
    fact = Column(Text, nullable=False)
    explanation = Column(Text, nullable=True)
    category = Column(String, nullable=True, index=True)
    saved_at = Column(BigInteger, nullable=False, index=True)


class TokenRow(Base):
    __tablename__ = "tokens"

    token = Column(String, primary_key=True)
    category = Column(String, nullable=False, index=True)
    updated_at = Column(BigInteger, nullable=False)


class ErrorLogRow(Base):
    __tablename__ = "error_logs"

    id = Column(String, primary_key=True)
    context = Column(JSON, nullable=False)
    error_message = Column(Text, nullable=False)
    stack = Column(Text, nullable=True)
    created_at = Column(BigInteger, nullable=False)
