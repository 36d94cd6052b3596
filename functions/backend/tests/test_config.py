import unittest

from pydantic import ValidationError

from backend.config import Settings


class SettingsTests(unittest.TestCase):
    def test_defaults(self):
        settings = Settings(_env_file=None)
        self.assertEqual(settings.max_fact_chars, 300)
        self.assertEqual(settings.max_ai_attempts, 5)
        self.assertEqual(settings.duplicate_lookback, 200)

    def test_duplicate_lookback_must_be_positive(self):
        with self.assertRaises(ValidationError):
            Settings(_env_file=None, duplicate_lookback=0)
        self.assertEqual(
            Settings(_env_file=None, duplicate_lookback=1).duplicate_lookback, 1
        )

    def test_private_key_newlines_are_expanded(self):
        settings = Settings(
            _env_file=None,
            firebase_project_id="demo",
            firebase_client_email="svc@demo.iam.gserviceaccount.com",
            firebase_private_key="line1\\nline2",
        )
        self.assertEqual(settings.firebase_credentials["private_key"], "line1\nline2")
        self.assertTrue(settings.uses_firestore)


if __name__ == "__main__":
    unittest.main()
