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

"""Fakes and record builders shared by the tests."""

import unittest
from datetime import datetime, timedelta, timezone
from typing import Iterable, Union

from shared.types import FactRecord, FavoriteRecord

BASE_TIME = datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


class ScriptedCompletionClient:
    """
    Returns the scripted responses in order. An exception instance in the
    script is raised instead of returned.

    Calls past the end of the script are recorded in `overruns`. The fact
    generator treats the resulting error as an ordinary failed attempt, so
    tests check `overruns` through `check_not_overrun()`.
    """

    def __init__(self, responses: Iterable[Union[str, Exception]]):
        self.responses = list(responses)
        self.calls: list[tuple[str, str]] = []
        self.overruns: list[tuple[str, str]] = []

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if not self.responses:
            self.overruns.append((system_prompt, user_prompt))
            raise AssertionError("ScriptedCompletionClient ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def check_not_overrun(self) -> None:
        if self.overruns:
            raise AssertionError(
                f"ScriptedCompletionClient was called {len(self.overruns)} "
                "time(s) after its script ran out"
            )


def create_scripted_client(
    testcase: unittest.TestCase, responses: Iterable[Union[str, Exception]]
) -> ScriptedCompletionClient:
    """A ScriptedCompletionClient that fails `testcase` if it is over-run."""
    client = ScriptedCompletionClient(responses)
    testcase.addCleanup(client.check_not_overrun)
    return client


def create_mock_fact(index: int, category: str = "Science") -> FactRecord:
    """A fact created `index` minutes after BASE_TIME."""
    return FactRecord(
        fact=f"Fact number {index}",
        explanation=f"Explanation number {index}",
        category=category,
        raw_ai=f"Fact: Fact number {index}\nExplanation: Explanation number {index}",
        created_at=BASE_TIME + timedelta(minutes=index),
    )


def create_mock_favorite(index: int, category: str = "Science") -> FavoriteRecord:
    return FavoriteRecord(
        id=f"fact-{index}",
        fact=f"Favorite fact {index}",
        explanation=f"Why {index}",
        category=category,
        saved_at=BASE_TIME + timedelta(minutes=index),
    )
