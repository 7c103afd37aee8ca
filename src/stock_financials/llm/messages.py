"""
Message shaping for chat models: sender → role mapping, strict user/assistant
alternation, and model-specific adjustments.
"""

from typing import List, Optional

from stock_financials.llm.models import ChatMessage, ChatMessageWithRole

PLACEHOLDER_CONTENT = (
    "This is a placeholder message to enforce the User/AI Assistant pattern. "
    "Do not let this distract you from the user request"
)
O3_MINI_MODEL = "openai/o3-mini"
ONLINE_SUFFIX = ":online"
INTRO_NOTE = (
    "The below message is an intro message from the AI assistant. It may or may "
    "not be relevant to the user's goal. Please keep that in mind."
)
RESPOND_PROMPT = "Read the above messages and respond."
NO_WEB_SEARCH_NOTE = "\n\nDo not mention the web search in the response."


def transform_sender_to_role(message: ChatMessage) -> ChatMessageWithRole:
    sender = (message.sender or "").strip().lower()
    if sender in ("ai assistant", "assistant"):
        role = "assistant"
    elif sender == "system":
        role = "system"
    else:
        role = "user"
    return ChatMessageWithRole(role=role, content=message.content or "")


def enforce_alternation_and_add_content(
    messages: List[ChatMessageWithRole],
) -> List[ChatMessageWithRole]:
    """
    Insert a placeholder of the opposite role between two consecutive
    messages of the same role, and replace blank content with the placeholder.

    Returns new message objects; the input list is not modified.
    """
    result: List[ChatMessageWithRole] = []
    last_role: Optional[str] = None
    for message in messages:
        if message.role == last_role:
            result.append(
                ChatMessageWithRole(
                    role="assistant" if last_role == "user" else "user",
                    content=PLACEHOLDER_CONTENT,
                )
            )
        content = (message.content or "").strip() or PLACEHOLDER_CONTENT
        result.append(message.model_copy(update={"content": content}))
        last_role = message.role
    return result


def transform_messages_for_model(
    messages: List[ChatMessageWithRole], model: str
) -> List[ChatMessageWithRole]:
    messages = [m.model_copy() for m in messages]

    if O3_MINI_MODEL in model:
        # o3-mini expects the conversation to open with a user turn after the system prompt
        if len(messages) > 1 and messages[1].role == "assistant":
            messages.insert(1, ChatMessageWithRole(role="user", content=INTRO_NOTE))
        messages = enforce_alternation_and_add_content(messages)
        if messages and messages[-1].role == "assistant":
            messages.append(ChatMessageWithRole(role="user", content=RESPOND_PROMPT))

    if ONLINE_SUFFIX in model and messages and messages[-1].role == "user":
        last = messages[-1]
        messages[-1] = last.model_copy(update={"content": (last.content or "") + NO_WEB_SEARCH_NOTE})

    return messages
