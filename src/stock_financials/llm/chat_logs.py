from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from stock_financials.data_collector.config import MongoConfig, mongo_config
from stock_financials.llm.models import AiChatType
from stock_financials.utils.logger import get_logger

logger = get_logger(__name__, utility="llm")


class ChatLogRepository:
    """Stores chat request/response pairs in the chat log collection"""

    def __init__(self, db: Database, config: Optional[MongoConfig] = None) -> None:
        self.config = config or mongo_config
        self.collection: Collection = db[self.config.CHAT_LOG_COLLECTION]

    def log_chat(
        self,
        request: Dict[str, Any],
        response: Optional[Dict[str, Any]],
        error: Optional[str] = None,
        chat_type: AiChatType = AiChatType.CHAT,
    ) -> None:
        if error:
            logger.warning(f"Requesty chat error: {error}")
        document = {
            "type": chat_type.value,
            "request": request,
            "response": response,
            "error": error,
            "created_at": datetime.now(timezone.utc),
        }
        try:
            self.collection.insert_one(document)
        except PyMongoError as e:
            logger.error(f"Error saving chat log: {e}")

    def get_full_logs(self) -> List[Dict[str, Any]]:
        return list(self.collection.find())
