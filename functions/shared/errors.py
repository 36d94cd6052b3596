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
"""Exceptions shared by the HTTP surfaces and the daily fact job."""


class ClientInputError(Exception):
    """Missing or invalid request parameters. Rendered as HTTP 400."""

    status_code = 400


class MethodNotAllowedError(Exception):
    """Rendered as HTTP 405."""

    status_code = 405

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message)


class UpstreamServiceError(Exception):
    """The completion endpoint failed or returned something unusable."""

    def __init__(self, message: str = "", status: int | None = None):
        super().__init__(message)
        self.status = status


class PersistenceError(Exception):
    pass


class NotificationError(Exception):
    pass
