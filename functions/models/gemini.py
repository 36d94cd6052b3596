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


import time
import logging
from google import genai
from google.genai import types

from shared.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-3-flash-preview"
FACT_MAX_OUTPUT_TOKENS = 1000
FACT_TEMPERATURE = 1.0


class GeminiInvalidResponseException(UpstreamServiceError):
    pass


def call_predict_with_system(
    system_prompt: str,
    query: str,
    model: str = DEFAULT_GEMINI_MODEL,
    api_key: str | None = None,
) -> str:
    """Calls Gemini with a system instruction and a single user turn."""
    client = genai.Client(api_key=api_key)

    start_time = time.time()
    response = client.models.generate_content(
        model=model,
        contents=query,
        config=types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=FACT_TEMPERATURE,
            max_output_tokens=FACT_MAX_OUTPUT_TOKENS,
        ),
    )
    logger.info("Gemini call (%s) took %.2fs", model, time.time() - start_time)
    if not response.text:
        raise GeminiInvalidResponseException("Gemini returned an empty response")
    return response.text


class GeminiClient:
    """Completion client backed by the Gemini API."""

    def __init__(self, api_key: str | None, model: str = DEFAULT_GEMINI_MODEL):
        self.api_key = api_key
        self.model = model

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        return call_predict_with_system(
            system_prompt, user_prompt, model=self.model, api_key=self.api_key
        )
