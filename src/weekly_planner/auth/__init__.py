"""
Identity.

- identity.py: one-shot bootstrap (resume -> custom token -> anonymous)
- local_provider.py: session-file backed provider with HMAC custom tokens
"""
