"""Access to the hosted workout assistant.

Wraps the vendor's thread, message and run operations behind one gateway
interface.

Responsibilities:
    - Environment-driven configuration and polling budgets
    - Direct OpenAI Assistants access via the official SDK
    - HTTP access through the thread/run functions
    - Normalizing upstream failures into GatewayError

Contains no conversation logic; see desktop_athlete.chat for that.
"""

from desktop_athlete.assistant.config import AssistantConfig, get_assistant_config
from desktop_athlete.assistant.gateway import AssistantGateway, GatewayError, create_gateway

__all__ = [
    "AssistantConfig",
    "AssistantGateway",
    "GatewayError",
    "create_gateway",
    "get_assistant_config",
]
