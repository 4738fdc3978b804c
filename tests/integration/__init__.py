"""Integration tests for components working together as a system.

Coverage:
    - API endpoints with real HTTP requests over ASGITransport
    - Session lifecycle from first message to clearing
    - Error rendering for validation, upstream and liveness failures
    - Live assistant round trip (when configured)

Requires environment variables for the live test only.
"""
