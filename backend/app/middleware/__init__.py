"""
Notebook Backend: Middleware Package
=====================================

Middleware Chain:
    Request → [Request ID] → [Logging] → Route Handler

    1. Request ID first: every later log line and error body can carry it
    2. Logging: access line with status and duration

CORS and body parsing belong to the fronting gateway and are not
configured here.
"""
