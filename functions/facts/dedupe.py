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

"""Best-effort duplicate detection over recently generated facts."""

import re
from typing import Iterable, Optional

from shared.constants import DUPLICATE_LOOKBACK

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", text or "").strip().lower()


class RecentFacts:
    """
    Normalized fact texts, most recent first, capped at `limit` entries.

    Only the window is checked, so a fact older than the window can repeat.
    """

    def __init__(self, texts: Iterable[str] = (), limit: int = DUPLICATE_LOOKBACK):
        self.limit = limit
        self._entries: list[str] = [normalize_text(t) for t in texts][:limit]

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def is_duplicate(self, fact: str, full_fact: Optional[str] = None) -> bool:
        candidates = {normalize_text(fact), normalize_text(full_fact or fact)}
        return any(candidate in self._entries for candidate in candidates)

    def register(self, fact: str) -> None:
        self._entries.insert(0, normalize_text(fact))
        del self._entries[self.limit :]
