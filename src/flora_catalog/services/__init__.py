"""
Shared plumbing for source access.

- http.py     - Shared requests session, awaitable ``get_json`` with error classification
- throttle.py - Per-source cooldown (RateLimiter) and bounded retries (RetryPolicy)
"""
