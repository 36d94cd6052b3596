"""
Backend package for the daily fact API.

This package provides a FastAPI application plus the storage, messaging and
completion clients shared with the Cloud Functions in main.py, so the same
endpoints can run as a long-running service.
"""
