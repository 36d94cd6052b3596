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


# Cloud functions for the daily fact service: query endpoints, favorites,
# push token registration and the daily fact broadcast.
#
# This file containing Python cloud functions must be named main.py.
# See https://cloud.google.com/run/docs/write-functions#python for more info.

# Standard library imports
import json
from typing import Callable, Optional

# Third-party library imports
from firebase_admin import initialize_app, firestore
from firebase_functions import https_fn, logger, options, scheduler_fn

# Local application imports
from backend.config import get_settings
from backend.db import DbClient
from backend.dependencies import get_completion_client
from backend.error_log import log_error
from backend.firestore_db import FirestoreDbClient
from backend.messaging import FcmMessenger, PushMessenger
from facts import broadcast, queries
from shared.errors import ClientInputError, MethodNotAllowedError

DAILY_FACT_FUNCTION_TIMEOUT = 540
DAILY_FACT_SCHEDULE = "0 9 * * *"
DAILY_FACT_FAILURE_MESSAGE = "Server error while sending daily facts. Check logs."

initialize_app()

_db_client: Optional[DbClient] = None
_messenger: Optional[PushMessenger] = None


def _get_db_client() -> DbClient:
    """Returns the Firestore client, created on first use and reused per instance."""
    global _db_client
    if _db_client is None:
        _db_client = FirestoreDbClient(firestore.client())
    return _db_client


def _get_messenger() -> PushMessenger:
    global _messenger
    if _messenger is None:
        _messenger = FcmMessenger()
    return _messenger


def _json_response(body: dict, status: int = 200) -> https_fn.Response:
    return https_fn.Response(
        json.dumps(body), status=status, content_type="application/json"
    )


def _request_body(req: https_fn.Request) -> dict:
    body = req.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _handle(
    req: https_fn.Request,
    operation: Callable[[], dict],
    failure_message: str,
    post_only: bool = False,
) -> https_fn.Response:
    """
    Runs `operation` and renders its result, or the error, as JSON.

    Client errors keep their message; anything else is logged and replaced by
    `failure_message` with a 500.
    """
    try:
        if post_only and req.method != "POST":
            raise MethodNotAllowedError()
        return _json_response(operation())
    except (ClientInputError, MethodNotAllowedError) as e:
        return _json_response({"error": str(e)}, status=e.status_code)
    except Exception as e:
        logger.error(f"{failure_message}: {e}")
        return _json_response({"error": failure_message}, status=500)


@https_fn.on_request(memory=options.MemoryOption.MB_256)
def get_facts(req: https_fn.Request) -> https_fn.Response:
    """Newest-first page of facts. Query: category, cursor, pageSize, q."""
    return _handle(
        req,
        lambda: queries.get_facts(
            _get_db_client(),
            category=req.args.get("category"),
            cursor=req.args.get("cursor"),
            page_size=req.args.get("pageSize"),
            q=req.args.get("q"),
        ),
        "Error fetching facts",
    )


@https_fn.on_request(memory=options.MemoryOption.MB_256)
def get_latest_fact(req: https_fn.Request) -> https_fn.Response:
    return _handle(
        req,
        lambda: queries.get_latest_fact(_get_db_client()),
        "Error fetching latest fact",
    )


@https_fn.on_request(memory=options.MemoryOption.MB_256)
def get_favorites(req: https_fn.Request) -> https_fn.Response:
    """Page of a token's favorites. Query: token (required), category, cursor, pageSize, q."""
    return _handle(
        req,
        lambda: queries.get_favorites(
            _get_db_client(),
            token=req.args.get("token"),
            category=req.args.get("category"),
            cursor=req.args.get("cursor"),
            page_size=req.args.get("pageSize"),
            q=req.args.get("q"),
        ),
        "Error fetching favorites",
    )


@https_fn.on_request(memory=options.MemoryOption.MB_256)
def get_shared_favorites(req: https_fn.Request) -> https_fn.Response:
    return _handle(
        req,
        lambda: queries.get_shared_favorites(
            _get_db_client(),
            user=req.args.get("user"),
            cursor=req.args.get("cursor"),
            page_size=req.args.get("pageSize"),
        ),
        "Error fetching shared favorites",
    )


@https_fn.on_request(memory=options.MemoryOption.MB_256)
def save_favorite(req: https_fn.Request) -> https_fn.Response:
    body = _request_body(req)
    return _handle(
        req,
        lambda: queries.save_favorite(
            _get_db_client(),
            token=body.get("token"),
            fact_id=body.get("factId"),
            fact=body.get("fact"),
            explanation=body.get("explanation"),
            category=body.get("category"),
        ),
        "Error saving favorite",
        post_only=True,
    )


@https_fn.on_request(memory=options.MemoryOption.MB_256)
def remove_favorite(req: https_fn.Request) -> https_fn.Response:
    body = _request_body(req)
    return _handle(
        req,
        lambda: queries.remove_favorite(
            _get_db_client(), token=body.get("token"), fact_id=body.get("factId")
        ),
        "Error removing favorite",
        post_only=True,
    )


@https_fn.on_request(memory=options.MemoryOption.MB_256)
def save_token(req: https_fn.Request) -> https_fn.Response:
    body = _request_body(req)
    return _handle(
        req,
        lambda: queries.save_token(
            _get_db_client(), token=body.get("token"), category=body.get("category")
        ),
        "Error saving token",
        post_only=True,
    )


def _run_daily_fact(db: DbClient, context: dict) -> dict:
    """
    Runs the broadcast with the configured limits. Fatal errors are written to
    the error log before being re-raised.
    """
    settings = get_settings()
    try:
        return broadcast.send_daily_fact(
            db,
            _get_messenger(),
            get_completion_client(),
            max_attempts=settings.max_ai_attempts,
            max_chars=settings.max_fact_chars,
            duplicate_lookback=settings.duplicate_lookback,
        )
    except Exception as e:
        logger.error(f"sendDailyFact fatal error: {e}")
        log_error(db, {"step": "handler", **context}, e)
        raise


@https_fn.on_request(
    timeout_sec=DAILY_FACT_FUNCTION_TIMEOUT, memory=options.MemoryOption.MB_512
)
def send_daily_fact(req: https_fn.Request) -> https_fn.Response:
    """Manually triggered run of the daily broadcast. No body is required."""
    try:
        result = _run_daily_fact(
            _get_db_client(), {"rawRequestBody": req.get_json(silent=True)}
        )
    except Exception as e:
        logger.error(f"sendDailyFact failed: {e}")
        return _json_response({"error": DAILY_FACT_FAILURE_MESSAGE}, status=500)
    return _json_response(result)


@scheduler_fn.on_schedule(
    schedule=DAILY_FACT_SCHEDULE,
    timezone=scheduler_fn.Timezone("UTC"),
    timeout_sec=DAILY_FACT_FUNCTION_TIMEOUT,
    memory=options.MemoryOption.MB_512,
)
def send_daily_fact_scheduled(event: scheduler_fn.ScheduledEvent) -> None:
    """Daily broadcast run by Cloud Scheduler."""
    result = _run_daily_fact(
        _get_db_client(), {"scheduleTime": str(event.schedule_time)}
    )
    logger.info(f"Daily fact results: {result}")
