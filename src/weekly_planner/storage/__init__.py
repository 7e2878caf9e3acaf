"""
Document storage adapters.

- subscription.py: push-notification channel for one document key
- sqlite_gateway.py: SQLite-backed gateway with change notification
"""
