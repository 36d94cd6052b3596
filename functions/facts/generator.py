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

"""Generates one unique fact per category with bounded retries."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from facts.dedupe import RecentFacts
from facts.parser import split_fact_explanation
from models import prompts
from shared.constants import (
    MAX_AI_ATTEMPTS_PER_CATEGORY,
    MAX_FACT_CHARS,
    TRUNCATION_MARKER,
)

logger = logging.getLogger(__name__)

ErrorReporter = Callable[[dict, Exception], None]


class CompletionClient(Protocol):
    """Anything that can turn a system + user prompt into completion text."""

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        ...


@dataclass
class GeneratedFact:
    fact: str
    explanation: str
    full_fact: Optional[str] = None
    raw_response: str = ""


@dataclass
class GenerationResult:
    """Outcome for one category: either `generated` or `error` is set."""

    category: str
    attempts: int
    generated: Optional[GeneratedFact] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.generated is not None


def truncate_fact(fact: str, max_chars: int = MAX_FACT_CHARS) -> tuple[str, Optional[str]]:
    """
    Returns (short form, full form). The full form is None unless the fact was
    longer than `max_chars`, in which case the short form keeps the first
    `max_chars - 1` characters followed by the truncation marker.
    """
    if len(fact) <= max_chars:
        return fact, None
    return fact[: max_chars - 1].rstrip() + TRUNCATION_MARKER, fact


def generate_fact(
    category: str,
    client: CompletionClient,
    recent: RecentFacts,
    *,
    max_attempts: int = MAX_AI_ATTEMPTS_PER_CATEGORY,
    max_chars: int = MAX_FACT_CHARS,
    report_error: Optional[ErrorReporter] = None,
) -> GenerationResult:
    """
    Asks the model for a fact about `category` until one is usable.

    An attempt is used up by a failed completion call, an empty parse or a
    duplicate of something in `recent`. An accepted fact is registered in
    `recent` so later categories in the same run cannot repeat it.

    Args:
        category (str): The subscriber category, "Random" for any domain.
        client (CompletionClient): The completion endpoint.
        recent (RecentFacts): The duplicate filter for this run.
        max_attempts (int): Upper bound on completion calls.
        max_chars (int): Cap on the short fact text.
        report_error (ErrorReporter | None): Called with (context, exception)
            for every failed completion call.

    Returns:
        GenerationResult: The accepted fact, or the failure message.
    """
    system_prompt = prompts.make_fact_system_prompt(category)

    for attempt in range(1, max_attempts + 1):
        try:
            raw_response = client.complete(system_prompt, prompts.FACT_USER_PROMPT)
        except Exception as e:
            logger.warning(
                "Completion call failed for %s (attempt %d): %s", category, attempt, e
            )
            if report_error:
                report_error(
                    {"step": "ai_call", "category": category, "attempt": attempt}, e
                )
            continue

        parsed = split_fact_explanation(raw_response)
        if not parsed.fact:
            logger.info("Empty fact for %s (attempt %d)", category, attempt)
            continue

        fact, full_fact = truncate_fact(parsed.fact, max_chars)
        if recent.is_duplicate(fact, full_fact):
            logger.info("Duplicate fact for %s (attempt %d)", category, attempt)
            continue

        recent.register(fact)
        return GenerationResult(
            category=category,
            attempts=attempt,
            generated=GeneratedFact(
                fact=fact,
                explanation=parsed.explanation,
                full_fact=full_fact,
                raw_response=raw_response or "",
            ),
        )

    return GenerationResult(
        category=category,
        attempts=max_attempts,
        error=(
            f'Failed to generate unique valid fact for category "{category}" '
            f"after {max_attempts} attempts."
        ),
    )
