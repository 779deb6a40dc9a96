"""
GenEdu Backend — Middleware Package
=====================================

Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

The request ID is set first so every access log line and error body
carries it.
"""
