from .chat_logs import ChatLogRepository
from .messages import (
    enforce_alternation_and_add_content,
    transform_messages_for_model,
    transform_sender_to_role,
)
from .model_cache import ModelListCache
from .models import ChatMessage, ChatMessageWithRole, ChatResponse, FallbackModel, SendChatMessageRequest
from .requesty_client import ChatRequestError, RequestyServiceClient

__all__ = [
    "ChatLogRepository",
    "enforce_alternation_and_add_content",
    "transform_messages_for_model",
    "transform_sender_to_role",
    "ModelListCache",
    "ChatMessage",
    "ChatMessageWithRole",
    "ChatResponse",
    "FallbackModel",
    "SendChatMessageRequest",
    "ChatRequestError",
    "RequestyServiceClient",
]
