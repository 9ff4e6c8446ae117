"""
The Villagers Backend — Middleware Package
============================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: generate (or accept) a correlation ID
    2. Logging: log method, path, status and duration with that ID

    The order is reversed for responses, so the request ID header is set on
    every response, error responses included.
"""
