# Middleware package init
"""
KNote Backend — Middleware Package
===================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → Route Handler

    1. Request ID first so the access log line and error bodies carry it
    2. Logging measures the full handler duration, including store round trips
"""
