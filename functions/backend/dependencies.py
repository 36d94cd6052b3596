"""
Dependency wiring for the FastAPI app and the daily fact job.
"""

from __future__ import annotations

import firebase_admin
from firebase_admin import App, credentials, firestore

from backend.config import get_settings
from backend.db import DbClient, InMemoryDbClient, SqlDbClient
from backend.firestore_db import FirestoreDbClient
from backend.messaging import FcmMessenger, InMemoryMessenger, PushMessenger
from facts.generator import CompletionClient
from models.gemini import GeminiClient
from models.openrouter import OpenRouterClient

_firebase_app: App | None = None
_db_client: DbClient | None = None
_messenger: PushMessenger | None = None
_completion_client: CompletionClient | None = None


def get_firebase_app() -> App:
    """
    Return the default Firebase app, initializing it from the configured
    service account (or Application Default Credentials) on first use.
    """
    global _firebase_app
    if _firebase_app:
        return _firebase_app

    try:
        _firebase_app = firebase_admin.get_app()
    except ValueError:
        settings = get_settings()
        service_account = settings.firebase_credentials
        credential = (
            credentials.Certificate(service_account) if service_account else None
        )
        options = (
            {"projectId": settings.firebase_project_id}
            if settings.firebase_project_id
            else None
        )
        _firebase_app = firebase_admin.initialize_app(credential, options)
    return _firebase_app


def _use_firebase() -> bool:
    settings = get_settings()
    return (
        not settings.use_in_memory_backends
        and not settings.database_url
        and settings.uses_firestore
    )


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _db_client = InMemoryDbClient()
    elif settings.database_url:
        _db_client = SqlDbClient(settings.database_url)
    elif _use_firebase():
        _db_client = FirestoreDbClient(firestore.client(get_firebase_app()))
    else:
        _db_client = InMemoryDbClient()
    return _db_client


def get_messenger() -> PushMessenger:
    global _messenger
    if _messenger:
        return _messenger

    if _use_firebase():
        _messenger = FcmMessenger(app=get_firebase_app())
    else:
        _messenger = InMemoryMessenger()
    return _messenger


def get_completion_client() -> CompletionClient:
    global _completion_client
    if _completion_client:
        return _completion_client

    settings = get_settings()
    if settings.llm_provider == "gemini":
        _completion_client = GeminiClient(
            api_key=settings.gemini_api_key, model=settings.gemini_model
        )
    else:
        _completion_client = OpenRouterClient(
            api_key=settings.openrouter_api_key,
            model=settings.openrouter_model,
            url=settings.openrouter_url,
            timeout=settings.ai_request_timeout_sec,
        )
    return _completion_client
