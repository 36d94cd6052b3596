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
# Standard library imports
import os
import sys
import unittest
from unittest.mock import MagicMock, patch

# Third-party library imports
from functions_framework import create_app

# Local application imports
from backend.db import InMemoryDbClient
from backend.messaging import InMemoryMessenger
from main_testing_utils import create_scripted_client, create_mock_fact

MAIN_SOURCE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "main.py")


def _test_client(target, db, messenger=None, completion_client=None):
    """
    Loads main.py and wires the fakes into the freshly loaded module.

    Every create_app() call executes main.py again as a new "main" module, so
    the fakes are set on that module rather than patched by name.
    """
    with patch("firebase_admin.initialize_app"):
        app = create_app(target, MAIN_SOURCE)
    main_module = sys.modules["main"]
    main_module._db_client = db
    main_module._messenger = messenger or InMemoryMessenger()
    if completion_client is not None:
        main_module.get_completion_client = lambda: completion_client
    return app.test_client()


class TestMainQueries(unittest.TestCase):

    def setUp(self):
        self.db = InMemoryDbClient()
        for i in range(3):
            self.db.add_fact(create_mock_fact(i))

    def test_get_facts(self):
        client = _test_client("get_facts", self.db)
        response = client.get("/", query_string={"pageSize": "2"})

        self.assertEqual(
            response.status_code,
            200,
            f"Request failed with status {response.status_code}. Body: {response.get_data(as_text=True)}",
        )
        body = response.get_json()
        self.assertEqual(
            [f["fact"] for f in body["facts"]], ["Fact number 2", "Fact number 1"],
        )
        self.assertIsInstance(body["nextCursor"], int)

    def test_get_facts_bad_page_size(self):
        client = _test_client("get_facts", self.db)
        response = client.get("/", query_string={"pageSize": "0"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.get_json(), {"error": "pageSize must be a positive integer"}
        )

    def test_get_latest_fact(self):
        response = _test_client("get_latest_fact", self.db).get("/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["fact"], "Fact number 2")

    def test_storage_failure_is_a_server_error(self):
        db = MagicMock()
        db.list_facts.side_effect = RuntimeError("firestore unavailable")
        response = _test_client("get_facts", db).get("/")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json(), {"error": "Error fetching facts"})


class TestMainFavorites(unittest.TestCase):

    def setUp(self):
        self.db = InMemoryDbClient()

    def test_save_list_and_remove(self):
        saved = _test_client("save_favorite", self.db).post(
            "/",
            json={
                "token": "tok",
                "factId": "f1",
                "fact": "Octopuses taste with their arms.",
                "category": "Animals",
            },
        )
        listed = _test_client("get_favorites", self.db).get(
            "/", query_string={"token": "tok"}
        )
        shared = _test_client("get_shared_favorites", self.db).get(
            "/", query_string={"user": "tok"}
        )
        removed = _test_client("remove_favorite", self.db).post(
            "/", json={"token": "tok", "factId": "f1"}
        )

        self.assertEqual(saved.get_json(), {"message": "Favorite saved"})
        self.assertEqual(listed.get_json()["items"][0]["id"], "f1")
        self.assertEqual(shared.get_json()["favorites"][0]["category"], "Animals")
        self.assertEqual(removed.get_json(), {"message": "Favorite removed"})
        self.assertEqual(self.db.list_favorites("tok"), [])

    def test_save_favorite_requires_post(self):
        response = _test_client("save_favorite", self.db).get("/")

        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.get_json(), {"error": "Method not allowed"})

    def test_save_favorite_missing_fields(self):
        response = _test_client("save_favorite", self.db).post(
            "/", json={"token": "tok"}
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json(), {"error": "Missing required fields"})

    def test_get_favorites_requires_token(self):
        response = _test_client("get_favorites", self.db).get("/")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json(), {"error": "token is required"})


class TestMainDailyFact(unittest.TestCase):

    def setUp(self):
        self.db = InMemoryDbClient()
        self.messenger = InMemoryMessenger()

    def test_save_token_then_send_daily_fact(self):
        completion = create_scripted_client(
            self,
            ["Fact: Sharks predate trees.\nExplanation: By about 50 million years."],
        )

        saved = _test_client("save_token", self.db).post(
            "/", json={"token": "abc", "category": "Science"}
        )
        before = _test_client("get_facts", self.db).get("/")
        response = _test_client(
            "send_daily_fact", self.db, self.messenger, completion
        ).post("/")

        self.assertEqual(saved.get_json(), {"message": "Token saved successfully"})
        self.assertEqual(before.get_json()["facts"], [])
        self.assertEqual(response.status_code, 200)
        results = response.get_json()["results"]
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]["category"], "Science")
        self.assertEqual(results[0]["fact"], "Sharks predate trees.")

        facts = self.db.list_facts()
        self.assertEqual(len(facts), 1)
        self.assertEqual(facts[0].category, "Science")
        self.assertEqual(len(self.messenger.sent), 1)
        self.assertEqual(self.messenger.sent[0]["tokens"], ["abc"])

    def test_send_daily_fact_without_subscribers(self):
        completion = create_scripted_client(self, [])
        response = _test_client(
            "send_daily_fact", self.db, self.messenger, completion
        ).get("/")

        self.assertEqual(response.get_json(), {"message": "No subscribers found."})

    def test_send_daily_fact_fatal_error(self):
        self.db.list_tokens = MagicMock(side_effect=RuntimeError("db down"))
        completion = create_scripted_client(self, [])
        response = _test_client(
            "send_daily_fact", self.db, self.messenger, completion
        ).post("/")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.get_json(),
            {"error": "Server error while sending daily facts. Check logs."},
        )
        self.assertEqual(self.db.error_logs[0].context["step"], "handler")
        self.assertEqual(self.db.error_logs[0].error_message, "db down")

    def test_scheduled_run(self):
        self.db.save_token("abc", "History")
        completion = create_scripted_client(
            self,
            ["Fact: Oxford is older than the Aztecs.\nExplanation: 1096 vs 1428."],
        )
        response = _test_client(
            "send_daily_fact_scheduled", self.db, self.messenger, completion
        ).post("/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            self.messenger.sent[0]["notification"]["title"],
            "🚂 Train of Enlightenment — History",
        )


if __name__ == "__main__":
    unittest.main()
