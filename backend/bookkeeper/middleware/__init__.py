"""
Book Keeper Backend - Middleware Package
=========================================

Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate limit first: abusive clients are turned away before any work
    2. Request ID next, so every later log line can carry it
    3. Access logging last, measuring the full handler time

Authentication is not middleware here: it is a per-route dependency
(routes/deps.py), since public and protected routes share routers.
"""
