# Middleware package init
"""
LoveAlbum Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [No-Cache]
            → [GZip] → [CORS] → Route Handler

    1. Rate Limit first: abusive requests are rejected before any work
    2. Request ID: correlation ID for logs and error bodies
    3. Logging: access line with status and duration
    4. No-Cache: no-store headers on /admin and /api/admin responses
    5. GZip / CORS: FastAPI's built-in middleware (CORS allows credentials
       so the admin cookie is sent cross-origin)

    Responses pass back through the chain in reverse order.
"""
