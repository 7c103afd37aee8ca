"""
Requesty router client for chat completions with model fallback
"""

import json
import time
from typing import Any, List, Optional

import requests
from pydantic import ValidationError

from stock_financials.llm.chat_logs import ChatLogRepository
from stock_financials.llm.config import RequestyConfig, requesty_config
from stock_financials.llm.messages import (
    ONLINE_SUFFIX,
    transform_messages_for_model,
    transform_sender_to_role,
)
from stock_financials.llm.model_cache import ModelListCache
from stock_financials.llm.models import (
    ChatMessage,
    ChatMessageWithRole,
    ChatRequestPayload,
    ChatResponse,
    FallbackModel,
    SendChatMessageRequest,
)
from stock_financials.utils.logger import get_logger

logger = get_logger(__name__, utility="llm")


class ChatRequestError(Exception):
    """A chat request failed or every fallback attempt was exhausted"""


class RequestyServiceClient:
    def __init__(
        self,
        config: Optional[RequestyConfig] = None,
        chat_logs: Optional[ChatLogRepository] = None,
        fallback_models: Optional[List[FallbackModel]] = None,
        models_cache: Optional[ModelListCache] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Initialize the client

        Args:
            config: API settings (defaults to the REQUESTY_* environment)
            chat_logs: Where successful exchanges are recorded; skipped when None
            fallback_models: Models tried after the requested one fails
            models_cache: Per-client cache for the model list
            session: HTTP session, one per client
        """
        self.config = config or requesty_config
        self.chat_logs = chat_logs
        self.fallback_models = (
            fallback_models if fallback_models is not None else [FallbackModel(model=None, max_attempts=2)]
        )
        self.models_cache = models_cache or ModelListCache(self.config.MODELS_CACHE_HOURS * 3600)
        self.session = session or requests.Session()

    def _headers(self) -> dict:
        try:
            return self.config.headers
        except ValueError as e:
            raise ChatRequestError(str(e)) from e

    def get_models(self) -> List[str]:
        """Model ids available on the router, each also offered with the :online suffix"""
        cached = self.models_cache.get()
        if cached is not None:
            return cached

        headers = self._headers()
        try:
            response = self.session.get(
                self.config.MODELS_URL, headers=headers, timeout=self.config.REQUEST_TIMEOUT
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching model list from Requesty: {e}")
            raise ChatRequestError("Failed to list models from Requesty") from e

        models = [
            name
            for info in data.get("data", [])
            for name in (info["id"], f"{info['id']}{ONLINE_SUFFIX}")
        ]
        self.models_cache.set(models)
        return models

    def send_request(self, request: SendChatMessageRequest) -> ChatResponse:
        """
        Send a chat request, falling back to the configured models on failure.

        Raises:
            ChatRequestError: when the requested model and every fallback attempt failed
        """
        model = request.model
        try:
            return self._try_request(model, request)
        except ChatRequestError as e:
            logger.error(f"Original model {model} failed: {e}")

        is_online = model.endswith(ONLINE_SUFFIX)
        for fallback in self.fallback_models:
            if fallback.model:
                fallback_model = f"{fallback.model}{ONLINE_SUFFIX}" if is_online else fallback.model
            else:
                fallback_model = model

            for attempt in range(fallback.max_attempts):
                try:
                    return self._try_request(fallback_model, request)
                except ChatRequestError as e:
                    logger.error(f"Fallback model {fallback_model} attempt {attempt + 1} failed: {e}")
                    time.sleep(self.config.RETRY_DELAY)

        raise ChatRequestError("All models and attempts exhausted. Please try again later.")

    def _try_request(self, model: str, request: SendChatMessageRequest) -> ChatResponse:
        system_message = ChatMessage(sender="System", content=request.system_prompt)
        messages = [transform_sender_to_role(m) for m in [system_message, *request.messages]]
        return self._chat(messages, request.user_id, model, request.temperature)

    @staticmethod
    def get_error(data: Any) -> Optional[str]:
        """API-level error carried in a response body, pretty-printed"""
        if isinstance(data, dict) and data.get("error"):
            return json.dumps(data["error"], indent=2)
        return None

    def _chat(
        self,
        messages: List[ChatMessageWithRole],
        user_id: str,
        model: str,
        temperature: float,
    ) -> ChatResponse:
        headers = self._headers()
        payload = ChatRequestPayload(
            model=model,
            user=user_id,
            messages=transform_messages_for_model(messages, model),
            temperature=temperature,
        ).model_dump(exclude_none=True)

        try:
            response = self.session.post(
                self.config.CHAT_URL,
                json=payload,
                headers=headers,
                timeout=self.config.REQUEST_TIMEOUT,
            )
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise ChatRequestError(f"Request to {model} failed: {e}") from e

        error = self.get_error(data)
        if error:
            raise ChatRequestError(error)
        if response.status_code != 200:
            raise ChatRequestError(f"HTTP {response.status_code} from {model}")

        try:
            chat_response = ChatResponse.model_validate(data)
        except ValidationError as e:
            raise ChatRequestError(f"Unexpected response shape from {model}: {e}") from e

        if self.chat_logs is not None:
            self.chat_logs.log_chat(payload, data, None)
        return chat_response
