"""
Push notification clients for Firebase Cloud Messaging and in-memory testing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

from firebase_admin import App, messaging

from shared.constants import FCM_MULTICAST_LIMIT
from shared.types import MulticastResult


class PushMessenger(Protocol):
    """Sends one notification to a group of device tokens."""

    def send_multicast(
        self, title: str, body: str, tokens: list[str]
    ) -> MulticastResult:
        ...


def _chunks(tokens: list[str], size: int) -> list[list[str]]:
    return [tokens[i : i + size] for i in range(0, len(tokens), size)]


@dataclass
class InMemoryMessenger:
    """Test double that records every multicast it is asked to send."""

    sent: list[dict] = field(default_factory=list)
    failing_tokens: set[str] = field(default_factory=set)

    def send_multicast(
        self, title: str, body: str, tokens: list[str]
    ) -> MulticastResult:
        self.sent.append(
            {"notification": {"title": title, "body": body}, "tokens": list(tokens)}
        )
        failed = [t for t in tokens if t in self.failing_tokens]
        return MulticastResult(
            success_count=len(tokens) - len(failed),
            failure_count=len(failed),
            failed_tokens=failed,
        )


@dataclass
class FcmMessenger:
    """
    Firebase Cloud Messaging client. Token lists longer than the multicast
    limit are split into several requests and the counts are summed.
    """

    app: Optional[App] = None

    def send_multicast(
        self, title: str, body: str, tokens: list[str]
    ) -> MulticastResult:
        result = MulticastResult()
        for batch in _chunks(tokens, FCM_MULTICAST_LIMIT):
            message = messaging.MulticastMessage(
                notification=messaging.Notification(title=title, body=body),
                tokens=batch,
            )
            response = messaging.send_each_for_multicast(message, app=self.app)
            result.success_count += response.success_count
            result.failure_count += response.failure_count
            for token, send_response in zip(batch, response.responses):
                if not send_response.success:
                    result.failed_tokens.append(token)
        return result
