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

"""Splits a completion into the fact and its explanation."""

import re
from dataclasses import dataclass

_FACT_PATTERN = re.compile(
    r"Fact\s*:\s*(.*?)(?=Explanation\s*:|\Z)", re.IGNORECASE | re.DOTALL
)
_EXPLANATION_PATTERN = re.compile(r"Explanation\s*:\s*(.*)", re.IGNORECASE | re.DOTALL)
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


@dataclass(frozen=True)
class ParsedFact:
    fact: str
    explanation: str


def split_fact_explanation(content: str | None) -> ParsedFact:
    """
    Extracts the fact and explanation from model output.

    The lookup order is:
      1. The "Fact:" / "Explanation:" labels (case-insensitive).
      2. The first paragraph as the fact, the remaining paragraphs as the
         explanation.
      3. The whole text as the fact, with an empty explanation.

    Args:
        content (str | None): The raw completion text.

    Returns:
        ParsedFact: Trimmed fact and explanation. Both are empty only when the
        content is empty.
    """
    content = content or ""

    fact_match = _FACT_PATTERN.search(content)
    explanation_match = _EXPLANATION_PATTERN.search(content)
    fact = fact_match.group(1).strip() if fact_match else ""
    explanation = explanation_match.group(1).strip() if explanation_match else ""

    if not fact and content:
        paragraphs = _PARAGRAPH_BREAK.split(content)
        fact = paragraphs[0].strip()
        explanation = "\n\n".join(paragraphs[1:]).strip()

    if not fact:
        fact = content.strip()

    return ParsedFact(fact=fact, explanation=explanation)
