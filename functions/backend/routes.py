"""
HTTP routes for the daily fact API.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.config import Settings, get_settings
from backend.db import DbClient
from backend.dependencies import get_completion_client, get_db_client, get_messenger
from backend.error_log import log_error
from backend.messaging import PushMessenger
from backend.schemas import (
    FactsPageResponse,
    FavoritesPageResponse,
    MessageResponse,
    RemoveFavoritePayload,
    SaveFavoritePayload,
    SaveTokenPayload,
    SharedFavoritesResponse,
)
from facts import broadcast, queries
from facts.generator import CompletionClient
from shared.errors import ClientInputError

logger = logging.getLogger(__name__)

router = APIRouter()

DAILY_FACT_FAILURE_MESSAGE = "Server error while sending daily facts. Check logs."


@contextmanager
def _server_error_as(message: str) -> Iterator[None]:
    """Re-raises anything but client input errors as a 500 with `message`."""
    try:
        yield
    except ClientInputError:
        raise
    except Exception as e:
        logger.exception(message)
        raise HTTPException(status_code=500, detail=message) from e


@router.get("/getFacts", response_model=FactsPageResponse)
def get_facts(
    category: Optional[str] = Query(None),
    cursor: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    q: Optional[str] = Query(None),
    db: DbClient = Depends(get_db_client),
):
    with _server_error_as("Error fetching facts"):
        return queries.get_facts(
            db, category=category, cursor=cursor, page_size=page_size, q=q
        )


@router.get("/getLatestFact")
def get_latest_fact(db: DbClient = Depends(get_db_client)):
    with _server_error_as("Error fetching latest fact"):
        return queries.get_latest_fact(db)


@router.get("/getFavorites", response_model=FavoritesPageResponse)
def get_favorites(
    token: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    cursor: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    q: Optional[str] = Query(None),
    db: DbClient = Depends(get_db_client),
):
    with _server_error_as("Error fetching favorites"):
        return queries.get_favorites(
            db,
            token=token,
            category=category,
            cursor=cursor,
            page_size=page_size,
            q=q,
        )


@router.get("/getSharedFavorites", response_model=SharedFavoritesResponse)
def get_shared_favorites(
    user: Optional[str] = Query(None),
    cursor: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    db: DbClient = Depends(get_db_client),
):
    with _server_error_as("Error fetching shared favorites"):
        return queries.get_shared_favorites(
            db, user=user, cursor=cursor, page_size=page_size
        )


@router.post("/saveFavorite", response_model=MessageResponse)
def save_favorite(payload: SaveFavoritePayload, db: DbClient = Depends(get_db_client)):
    with _server_error_as("Error saving favorite"):
        return queries.save_favorite(
            db,
            token=payload.token,
            fact_id=payload.fact_id,
            fact=payload.fact,
            explanation=payload.explanation,
            category=payload.category,
        )


@router.post("/removeFavorite", response_model=MessageResponse)
def remove_favorite(
    payload: RemoveFavoritePayload, db: DbClient = Depends(get_db_client)
):
    with _server_error_as("Error removing favorite"):
        return queries.remove_favorite(
            db, token=payload.token, fact_id=payload.fact_id
        )


@router.post("/saveToken", response_model=MessageResponse)
def save_token(payload: SaveTokenPayload, db: DbClient = Depends(get_db_client)):
    with _server_error_as("Error saving token"):
        return queries.save_token(db, token=payload.token, category=payload.category)


@router.api_route("/sendDailyFact", methods=["GET", "POST"])
def send_daily_fact(
    db: DbClient = Depends(get_db_client),
    messenger: PushMessenger = Depends(get_messenger),
    client: CompletionClient = Depends(get_completion_client),
    settings: Settings = Depends(get_settings),
):
    """
    Runs the daily job. Meant to be hit by a scheduler (cron) with no body.
    """
    try:
        return broadcast.send_daily_fact(
            db,
            messenger,
            client,
            max_attempts=settings.max_ai_attempts,
            max_chars=settings.max_fact_chars,
            duplicate_lookback=settings.duplicate_lookback,
        )
    except Exception as e:
        logger.exception("sendDailyFact fatal error")
        log_error(db, {"step": "handler"}, e)
        raise HTTPException(status_code=500, detail=DAILY_FACT_FAILURE_MESSAGE) from e
