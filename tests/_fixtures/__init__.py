"""Fixtures package for tests.

Re-export the store fakes, canned responses and factories for convenient
imports from `tests._fixtures`.
"""

from .db import (
    BigQueryClientFake,
    CollectionFake,
    DatabaseFake,
)
from .factories import ChatMessageFactory, FinancialRecordFactory
from .frozen_time import FrozenClock
from .remote_api_responses import (
    ETF_PAYLOAD,
    MSFT_PAYLOAD,
    AiohttpRespFake,
    AiohttpSessionFake,
    EodhdClientFake,
    RequestsResponseFake,
    bulk_entry,
    chat_completion,
    fundamentals_payload,
    statement_entry,
)

__all__ = [
    "BigQueryClientFake",
    "CollectionFake",
    "DatabaseFake",
    "ChatMessageFactory",
    "FinancialRecordFactory",
    "FrozenClock",
    "ETF_PAYLOAD",
    "MSFT_PAYLOAD",
    "AiohttpRespFake",
    "AiohttpSessionFake",
    "EodhdClientFake",
    "RequestsResponseFake",
    "bulk_entry",
    "chat_completion",
    "fundamentals_payload",
    "statement_entry",
]
