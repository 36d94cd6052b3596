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

"""Records stored by the daily fact service."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from shared.constants import DEFAULT_CATEGORY
from shared.utils import to_millis


@dataclass
class FactRecord:
    """A generated fact. Immutable once stored."""

    fact: str
    explanation: str = ""
    category: str = DEFAULT_CATEGORY
    raw_ai: str = ""
    # Untruncated text, only set when `fact` was shortened.
    full_fact: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def as_dict(self) -> dict:
        data = {
            "id": self.id,
            "fact": self.fact,
            "explanation": self.explanation,
            "category": self.category,
            "createdAt": to_millis(self.created_at),
            "rawAI": self.raw_ai,
        }
        if self.full_fact:
            data["fullFact"] = self.full_fact
        return data


@dataclass
class FavoriteRecord:
    """A fact saved by one subscriber token. `id` is the fact id."""

    id: str
    fact: str
    explanation: Optional[str] = None
    category: Optional[str] = None
    saved_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "fact": self.fact,
            "explanation": self.explanation,
            "category": self.category,
            "savedAt": to_millis(self.saved_at),
        }


@dataclass
class TokenRecord:
    """A push destination and the category it subscribed to."""

    token: str
    category: str = DEFAULT_CATEGORY
    updated_at: Optional[datetime] = None


@dataclass
class ErrorLogRecord:
    context: dict[str, Any]
    error_message: str
    stack: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class MulticastResult:
    success_count: int = 0
    failure_count: int = 0
    failed_tokens: list[str] = field(default_factory=list)
