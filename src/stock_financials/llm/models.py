"""
Request and response models for the Requesty chat completions API
"""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system"]


class AiChatType(str, Enum):
    IMAGE = "image"
    EMBEDDINGS = "embeddings"
    CHAT = "chat"


class ChatMessage(BaseModel):
    """Message as stored by the application ("AI Assistant", "User" or "System" sender)"""

    sender: str
    content: Optional[str] = ""


class ChatMessageWithRole(BaseModel):
    role: Role
    content: Optional[str] = ""


class FallbackModel(BaseModel):
    model: Optional[str] = None  # None retries the requested model
    max_attempts: int = Field(default=2, ge=1)


class SendChatMessageRequest(BaseModel):
    system_prompt: str
    model: str
    temperature: float = 0.7
    messages: List[ChatMessage] = Field(default_factory=list)
    user_id: str


class ChatRequestPayload(BaseModel):
    model: str
    user: str
    messages: List[ChatMessageWithRole]
    temperature: float
    max_tokens: Optional[int] = None


class ToolCallFunction(BaseModel):
    name: str
    arguments: str


class ToolCall(BaseModel):
    id: str
    type: Literal["function"] = "function"
    function: ToolCallFunction


class ResponseMessage(BaseModel):
    role: str
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None


class ChatUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatChoice(BaseModel):
    index: int = 0
    finish_reason: Optional[str] = None
    message: ResponseMessage


class ChatResponse(BaseModel):
    usage: Optional[ChatUsage] = None
    choices: List[ChatChoice] = Field(default_factory=list)
    created: Optional[int] = None

    @property
    def content(self) -> Optional[str]:
        """Text of the first choice, if any"""
        if not self.choices:
            return None
        return self.choices[0].message.content
