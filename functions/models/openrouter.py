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


import logging
import time

import requests

from shared.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

OPENROUTER_CHAT_COMPLETIONS_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_OPENROUTER_MODEL = "mistralai/mistral-small-3.1-24b-instruct"


class OpenRouterInvalidResponseException(UpstreamServiceError):
    pass


def call_chat_completion(
    system_prompt: str,
    user_prompt: str,
    api_key: str | None,
    model: str = DEFAULT_OPENROUTER_MODEL,
    url: str = OPENROUTER_CHAT_COMPLETIONS_URL,
    timeout: float | None = None,
) -> str:
    """
    Sends a system + user message pair to an OpenAI-compatible chat endpoint.

    Args:
        system_prompt (str): The persona/instructions message.
        user_prompt (str): The user message.
        api_key (str | None): Bearer token for the endpoint.
        model (str): The model to call with.
        url (str): The chat completions URL.
        timeout (float | None): Request timeout in seconds, None to wait indefinitely.

    Returns:
        str: The content of the first choice, possibly empty.

    Raises:
        OpenRouterInvalidResponseException: On a non-2xx status or a body that
            is not JSON.
    """
    body = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
    }
    start_time = time.time()
    response = requests.post(
        url,
        json=body,
        headers={"Authorization": f"Bearer {api_key or ''}"},
        timeout=timeout,
    )
    logger.info(
        "OpenRouter call (%s) took %.2fs, status %s",
        model,
        time.time() - start_time,
        response.status_code,
    )

    if not response.ok:
        raise OpenRouterInvalidResponseException(
            f"OpenRouter returned {response.status_code}: {response.text}",
            status=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise OpenRouterInvalidResponseException(
            f"OpenRouter returned a non-JSON body: {e}", status=response.status_code
        ) from e

    choices = payload.get("choices") if isinstance(payload, dict) else None
    if not choices:
        return ""
    message = choices[0].get("message") or {}
    return message.get("content") or ""


class OpenRouterClient:
    """Completion client backed by the OpenRouter chat completions API."""

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_OPENROUTER_MODEL,
        url: str = OPENROUTER_CHAT_COMPLETIONS_URL,
        timeout: float | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.url = url
        self.timeout = timeout

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        return call_chat_completion(
            system_prompt,
            user_prompt,
            api_key=self.api_key,
            model=self.model,
            url=self.url,
            timeout=self.timeout,
        )
