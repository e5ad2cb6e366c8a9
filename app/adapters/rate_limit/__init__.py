"""Rate limiting adapters.

Callers depend on ``AbstractRateLimiter`` so the in-memory counter can later
be replaced by Redis or another shared store without touching the API layer.
"""
