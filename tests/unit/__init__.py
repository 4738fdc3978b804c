"""Unit tests for individual components in isolation.

Ensures fast execution with no network access.

Coverage:
    - chat/: Send state machine, budgets, sanitization
    - assistant/: Configuration and both gateways

Uses a scripted gateway, mocked SDK clients and httpx.MockTransport.
"""
