"""Test package for Desktop Athlete.

Unit tests cover isolated logic; integration tests drive the HTTP API.

Structure:
    - unit/: Orchestrator, sanitizer, config and gateway tests
    - integration/: API workflow tests through ASGITransport

The hosted assistant is replaced by a scripted fake gateway except in the
live test, which needs real credentials.
Leverages pytest with pytest-check for soft assertions.
"""
