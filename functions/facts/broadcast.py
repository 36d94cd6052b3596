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

"""The daily job: one fact per subscriber category, pushed to that category."""

import logging
from functools import partial
from typing import Iterable

from backend.db import DbClient
from backend.error_log import log_error
from backend.messaging import PushMessenger
from facts.dedupe import RecentFacts
from facts.generator import CompletionClient, GeneratedFact, generate_fact
from shared.constants import (
    DEFAULT_CATEGORY,
    DUPLICATE_LOOKBACK,
    MAX_AI_ATTEMPTS_PER_CATEGORY,
    MAX_FACT_CHARS,
    NOTIFICATION_TITLE_PREFIX,
)
from shared.errors import NotificationError, PersistenceError, UpstreamServiceError
from shared.types import FactRecord, MulticastResult, TokenRecord

logger = logging.getLogger(__name__)

NO_SUBSCRIBERS_MESSAGE = "No subscribers found."


def notification_title(category: str) -> str:
    return f"{NOTIFICATION_TITLE_PREFIX} — {category}"


def group_tokens_by_category(tokens: Iterable[TokenRecord]) -> dict[str, list[str]]:
    """Groups token ids by category, in first-seen order. Blank means Random."""
    groups: dict[str, list[str]] = {}
    for record in tokens:
        groups.setdefault(record.category or DEFAULT_CATEGORY, []).append(
            record.token
        )
    return groups


def _persist_fact(db: DbClient, category: str, generated: GeneratedFact) -> str:
    record = FactRecord(
        fact=generated.fact,
        explanation=generated.explanation,
        category=category,
        raw_ai=generated.raw_response,
        full_fact=generated.full_fact,
    )
    try:
        return db.add_fact(record)
    except Exception as e:
        raise PersistenceError(f"Failed to save fact for {category}: {e}") from e


def _notify(
    messenger: PushMessenger, category: str, fact: str, tokens: list[str]
) -> MulticastResult:
    try:
        return messenger.send_multicast(notification_title(category), fact, tokens)
    except Exception as e:
        raise NotificationError(f"Failed to notify {category}: {e}") from e


def _broadcast_category(
    db: DbClient,
    messenger: PushMessenger,
    client: CompletionClient,
    recent: RecentFacts,
    category: str,
    tokens: list[str],
    *,
    max_attempts: int,
    max_chars: int,
) -> dict:
    result = generate_fact(
        category,
        client,
        recent,
        max_attempts=max_attempts,
        max_chars=max_chars,
        report_error=partial(log_error, db),
    )
    if not result.ok:
        logger.error(result.error)
        log_error(
            db,
            {
                "step": "ai_generation_failed",
                "category": category,
                "attempts": result.attempts,
            },
            UpstreamServiceError(result.error),
        )
        return {"category": category, "error": result.error}

    generated = result.generated
    try:
        fact_id = _persist_fact(db, category, generated)
    except PersistenceError as e:
        logger.error(str(e))
        log_error(db, {"step": "persist_fact", "category": category}, e)
        return {"category": category, "fact": generated.fact, "error": "Failed to save fact"}
    logger.info("Saved fact %s for %s", fact_id, category)

    try:
        delivery = _notify(messenger, category, generated.fact, tokens)
    except NotificationError as e:
        logger.error(str(e))
        log_error(db, {"step": "fcm_send", "category": category}, e)
        return {
            "category": category,
            "fact": generated.fact,
            "error": "Notification send failed",
        }
    logger.info(
        "Sent %s fact to %d/%d tokens",
        category,
        delivery.success_count,
        len(tokens),
    )

    return {
        "category": category,
        "fact": generated.fact,
        "explanation": generated.explanation,
        "success": delivery.success_count,
        "failure": delivery.failure_count,
    }


def send_daily_fact(
    db: DbClient,
    messenger: PushMessenger,
    client: CompletionClient,
    *,
    max_attempts: int = MAX_AI_ATTEMPTS_PER_CATEGORY,
    max_chars: int = MAX_FACT_CHARS,
    duplicate_lookback: int = DUPLICATE_LOOKBACK,
) -> dict:
    """
    Generates, stores and pushes one fact per subscriber category.

    Categories are processed one at a time. A category whose generation, save
    or push fails gets an entry with an `error` key and the job carries on
    with the next category. Reading the subscribers or the recent facts is not
    guarded: those failures propagate to the caller.

    Returns:
        dict: {"results": [...]} with one entry per category, or
        {"message": ...} when nobody is subscribed.
    """
    groups = group_tokens_by_category(db.list_tokens())
    if not groups:
        logger.info(NO_SUBSCRIBERS_MESSAGE)
        return {"message": NO_SUBSCRIBERS_MESSAGE}

    recent = RecentFacts(
        (f.fact for f in db.list_facts(limit=duplicate_lookback)),
        limit=duplicate_lookback,
    )

    results = [
        _broadcast_category(
            db,
            messenger,
            client,
            recent,
            category,
            tokens,
            max_attempts=max_attempts,
            max_chars=max_chars,
        )
        for category, tokens in groups.items()
    ]
    return {"results": results}
