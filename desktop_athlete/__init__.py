"""Desktop Athlete - chat with an AI assistant for free bodyweight workouts.

Combines FastAPI for the HTTP surface, the OpenAI Assistants API (directly
or through thread/run functions) for replies, and Pydantic for validation.

Components:
    - api: HTTP endpoints for sending messages and managing sessions
    - assistant: Configuration and gateways to the hosted assistant
    - chat: Conversation orchestration with bounded polling and retries
    - models: Request/response and vendor schemas
"""

__version__ = "0.1.0"
