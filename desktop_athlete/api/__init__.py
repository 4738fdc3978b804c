"""FastAPI endpoints for the Desktop Athlete assistant.

HTTP routes with async request handling.

Endpoints:
    - GET /health: Service health status
    - POST /chat/messages: Send a message and get the updated conversation
    - GET /chat/sessions/{id}: Chat session details
    - DELETE /chat/sessions/{id}: Forget a session's thread
"""

from desktop_athlete.api.app import app, create_app

__all__ = ["app", "create_app"]
