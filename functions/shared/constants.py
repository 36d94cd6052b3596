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


# Fact generation
MAX_FACT_CHARS = 300
MAX_AI_ATTEMPTS_PER_CATEGORY = 5
DUPLICATE_LOOKBACK = 200
TRUNCATION_MARKER = "…"

# Categories
DEFAULT_CATEGORY = "Random"
ALL_CATEGORIES = "All"

# Pagination
FACTS_PAGE_SIZE = 20
FAVORITES_PAGE_SIZE = 10
SHARED_FAVORITES_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

# Push notifications
FCM_MULTICAST_LIMIT = 500
NOTIFICATION_TITLE_PREFIX = "🚂 Train of Enlightenment"
