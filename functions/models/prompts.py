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

"""Prompts for the daily fact persona."""

from shared.constants import DEFAULT_CATEGORY

PERSONA_PROMPT_TEMPLATE = (
    "You are Sheldon Cooper — sarcastically intelligent. Provide exactly one "
    "concise fun fact {subject} and then its explanation. ALWAYS prefix the "
    'fact with "Fact:" and the explanation with "Explanation:". The fact must '
    "be short and self-contained. Do not produce lists."
)

FACT_USER_PROMPT = "Give me one fun fact and its explanation. Only one fact."


def make_fact_system_prompt(category: str | None) -> str:
    """Builds the persona prompt, scoped to `category` unless it is Random/unset."""
    if category and category != DEFAULT_CATEGORY:
        subject = f"about {category.lower()}"
    else:
        subject = "(any domain)"
    return PERSONA_PROMPT_TEMPLATE.format(subject=subject)
