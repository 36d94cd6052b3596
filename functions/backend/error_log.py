"""
Best-effort diagnostic records written to the `error_logs` collection.
"""

from __future__ import annotations

import logging
import traceback

from backend.db import DbClient
from shared.types import ErrorLogRecord

logger = logging.getLogger(__name__)


def log_error(db: DbClient, context: dict, error: BaseException) -> None:
    """
    Appends an error log entry. Never raises: a failed write is only reported
    to the process logger.
    """
    stack = "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    )
    record = ErrorLogRecord(
        context=context,
        error_message=str(error) or type(error).__name__,
        stack=stack or None,
    )
    try:
        db.add_error_log(record)
    except Exception:
        logger.exception("Failed to write error_log for context %s", context)
