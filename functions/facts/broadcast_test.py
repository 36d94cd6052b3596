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


import unittest
from unittest.mock import MagicMock

from backend.db import InMemoryDbClient
from backend.messaging import InMemoryMessenger
from facts import broadcast
from main_testing_utils import create_scripted_client, create_mock_fact
from shared.types import TokenRecord


class FailingAddFactDb(InMemoryDbClient):
    def add_fact(self, fact):
        raise RuntimeError("write refused")


class GroupTokensTest(unittest.TestCase):

    def test_groups_in_first_seen_order(self):
        groups = broadcast.group_tokens_by_category(
            [
                TokenRecord(token="a", category="Science"),
                TokenRecord(token="b", category="History"),
                TokenRecord(token="c", category="Science"),
            ],
        )
        self.assertEqual(list(groups), ["Science", "History"])
        self.assertEqual(groups["Science"], ["a", "c"])

    def test_blank_category_is_random(self):
        groups = broadcast.group_tokens_by_category(
            [TokenRecord(token="a", category="")],
        )
        self.assertEqual(groups, {"Random": ["a"]})


class SendDailyFactTest(unittest.TestCase):

    def setUp(self):
        self.db = InMemoryDbClient()
        self.messenger = InMemoryMessenger()

    def test_no_subscribers(self):
        client = create_scripted_client(self, [])

        result = broadcast.send_daily_fact(self.db, self.messenger, client)

        self.assertEqual(result, {"message": "No subscribers found."})
        self.assertEqual(client.calls, [])
        self.assertEqual(self.db.facts, {})
        self.assertEqual(self.messenger.sent, [])

    def test_one_fact_per_category(self):
        self.db.save_token("a", "Science")
        self.db.save_token("b", "History")
        self.db.save_token("c", "Science")
        client = create_scripted_client(
            self,
            [
                "Fact: Water expands when it freezes.\nExplanation: Hydrogen bonds.",
                "Fact: Cleopatra lived closer to the Moon landing.\nExplanation: Dates.",
            ],
        )

        result = broadcast.send_daily_fact(self.db, self.messenger, client)

        self.assertEqual(
            result["results"],
            [
                {
                    "category": "Science",
                    "fact": "Water expands when it freezes.",
                    "explanation": "Hydrogen bonds.",
                    "success": 2,
                    "failure": 0,
                },
                {
                    "category": "History",
                    "fact": "Cleopatra lived closer to the Moon landing.",
                    "explanation": "Dates.",
                    "success": 1,
                    "failure": 0,
                },
            ],
        )
        self.assertEqual(len(self.messenger.sent), 2)
        self.assertEqual(
            self.messenger.sent[0],
            {
                "notification": {
                    "title": "🚂 Train of Enlightenment — Science",
                    "body": "Water expands when it freezes.",
                },
                "tokens": ["a", "c"],
            },
        )
        stored = self.db.list_facts()
        self.assertEqual(len(stored), 2)
        self.assertEqual(
            {f.category for f in stored}, {"Science", "History"}
        )
        science = [f for f in stored if f.category == "Science"][0]
        self.assertIn("Explanation: Hydrogen bonds.", science.raw_ai)

    def test_recent_facts_are_not_repeated(self):
        self.db.add_fact(create_mock_fact(1))
        self.db.save_token("a", "Science")
        client = create_scripted_client(
            self,
            [
                "Fact: Fact number 1\nExplanation: Again.",
                "Fact: Something new.\nExplanation: Fresh.",
            ],
        )

        result = broadcast.send_daily_fact(self.db, self.messenger, client)

        self.assertEqual(result["results"][0]["fact"], "Something new.")
        self.assertEqual(len(client.calls), 2)

    def test_same_fact_is_not_sent_to_two_categories(self):
        self.db.save_token("a", "Science")
        self.db.save_token("b", "Random")
        client = create_scripted_client(
            self,
            [
                "Fact: Shared fact.\nExplanation: One.",
                "Fact: Shared fact.\nExplanation: Two.",
                "Fact: Other fact.\nExplanation: Three.",
            ],
        )

        result = broadcast.send_daily_fact(self.db, self.messenger, client)

        facts = [r["fact"] for r in result["results"]]
        self.assertEqual(facts, ["Shared fact.", "Other fact."])

    def test_generation_failure_does_not_stop_other_categories(self):
        self.db.save_token("a", "Science")
        self.db.save_token("b", "History")
        client = create_scripted_client(
            self,
            ["", "", "Fact: Rome was not built in a day.\nExplanation: Slow."],
        )

        result = broadcast.send_daily_fact(
            self.db, self.messenger, client, max_attempts=2
        )

        science, history = result["results"]
        self.assertEqual(
            science,
            {
                "category": "Science",
                "error": 'Failed to generate unique valid fact for category "Science" after 2 attempts.',
            },
        )
        self.assertEqual(history["fact"], "Rome was not built in a day.")
        self.assertEqual(len(self.messenger.sent), 1)
        steps = [log.context["step"] for log in self.db.error_logs]
        self.assertEqual(steps, ["ai_generation_failed"])

    def test_ai_call_errors_are_logged(self):
        self.db.save_token("a", "Science")
        client = create_scripted_client(
            self,
            [RuntimeError("timeout"), "Fact: Late.\nExplanation: But fine."],
        )

        result = broadcast.send_daily_fact(self.db, self.messenger, client)

        self.assertEqual(result["results"][0]["fact"], "Late.")
        self.assertEqual(len(self.db.error_logs), 1)
        log = self.db.error_logs[0]
        self.assertEqual(
            log.context, {"step": "ai_call", "category": "Science", "attempt": 1}
        )
        self.assertEqual(log.error_message, "timeout")
        self.assertIn("RuntimeError", log.stack)

    def test_save_failure_skips_notification(self):
        db = FailingAddFactDb()
        db.save_token("a", "Science")
        client = create_scripted_client(self, ["Fact: Unsaved.\nExplanation: Lost."])

        result = broadcast.send_daily_fact(db, self.messenger, client)

        self.assertEqual(
            result["results"],
            [{"category": "Science", "fact": "Unsaved.", "error": "Failed to save fact"}],
        )
        self.assertEqual(self.messenger.sent, [])
        self.assertEqual(db.error_logs[0].context["step"], "persist_fact")

    def test_notification_failure_is_reported(self):
        self.db.save_token("a", "Science")
        messenger = MagicMock()
        messenger.send_multicast.side_effect = RuntimeError("FCM unavailable")
        client = create_scripted_client(self, ["Fact: Saved.\nExplanation: Not sent."])

        result = broadcast.send_daily_fact(self.db, messenger, client)

        self.assertEqual(
            result["results"],
            [
                {
                    "category": "Science",
                    "fact": "Saved.",
                    "error": "Notification send failed",
                }
            ],
        )
        self.assertEqual(len(self.db.list_facts()), 1)
        self.assertEqual(self.db.error_logs[0].context["step"], "fcm_send")

    def test_failed_tokens_are_counted(self):
        self.db.save_token("good", "Science")
        self.db.save_token("stale", "Science")
        messenger = InMemoryMessenger(failing_tokens={"stale"})
        client = create_scripted_client(self, ["Fact: Counted.\nExplanation: Yes."])

        result = broadcast.send_daily_fact(self.db, messenger, client)

        self.assertEqual(result["results"][0]["success"], 1)
        self.assertEqual(result["results"][0]["failure"], 1)


if __name__ == "__main__":
    unittest.main()
