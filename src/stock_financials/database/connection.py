"""
Database Connection Module

MongoDB connection handling for the financials document store.
"""

import atexit
import threading
from typing import Any, Dict, List, Optional

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from stock_financials.data_collector.config import MongoConfig, mongo_config
from stock_financials.utils.logger import get_logger

logger = get_logger(__name__, utility="database")


class MongoConnection:
    """Owns one MongoClient for the configured local or cloud deployment"""

    def __init__(self, db_type: Optional[str] = None, config: Optional[MongoConfig] = None):
        self.config = config or mongo_config
        self.db_type = db_type or self.config.DB_TYPE
        if not self.db_type:
            raise ValueError("No database type provided")
        self._client: Optional[MongoClient] = None

    @property
    def client(self) -> MongoClient:
        if self._client is None:
            raise RuntimeError("MongoClient is not connected")
        return self._client

    def connect(self) -> "MongoConnection":
        if self._client is not None:
            return self
        url = self.config.connection_url(self.db_type)
        self._client = MongoClient(
            url, serverSelectionTimeoutMS=self.config.SERVER_SELECTION_TIMEOUT_MS
        )
        # fail fast when the server is unreachable
        self._client.admin.command("ping")
        logger.info(f"Successfully connected to {self.db_type} database server!")
        return self

    def disconnect(self) -> None:
        if self._client is None:
            return
        try:
            self._client.close()
            logger.info(f"Disconnected from {self.db_type} database server")
        finally:
            self._client = None

    def get_database(self, name: Optional[str] = None) -> Database:
        """Database named by the argument, the URI, or DB_NAME in that order"""
        if name:
            return self.client[name]
        return self.client.get_default_database(default=self.config.DB_NAME)

    def _long_running_ops(self, threshold_s: float) -> List[Dict[str, Any]]:
        current = self.client.admin.command("currentOp")
        return [
            op
            for op in current.get("inprog", [])
            if op.get("secs_running", 0) > threshold_s and op.get("op") == "query"
        ]

    def kill_long_running_queries(self, threshold_s: float) -> int:
        """Kill query operations running longer than `threshold_s`; returns the kill count"""
        killed = 0
        for op in self._long_running_ops(threshold_s):
            try:
                self.client.admin.command("killOp", op=op["opid"])
                killed += 1
                logger.info(f"Killed long-running operation: {op['opid']}")
            except PyMongoError as exc:
                logger.error(f"Failed to kill operation {op.get('opid')}: {exc}")
        logger.info(f"Checked for long-running queries exceeding {threshold_s} seconds.")
        return killed

    def get_long_running_queries(self, threshold_s: float) -> List[Dict[str, Any]]:
        return [
            {
                "operation_id": op.get("opid"),
                "namespace": op.get("ns"),
                "description": op.get("desc"),
                "client": op.get("client"),
                "app_name": op.get("appName"),
                "duration": op.get("secs_running"),
                "plan_summary": op.get("planSummary"),
                "query": op.get("command"),
                "lock_stats": op.get("lockStats"),
                "waiting_for_lock": op.get("waitingForLock"),
                "num_yields": op.get("numYields"),
                "thread_id": op.get("threadId"),
            }
            for op in self._long_running_ops(threshold_s)
        ]


# Module-level singleton for the process-wide connection
_GLOBAL_CONNECTION: Optional[MongoConnection] = None
_GLOBAL_LOCK = threading.RLock()


def get_global_connection(db_type: Optional[str] = None) -> MongoConnection:
    """Return the connected global MongoConnection, connecting on first use"""
    global _GLOBAL_CONNECTION
    if _GLOBAL_CONNECTION is None:
        with _GLOBAL_LOCK:
            if _GLOBAL_CONNECTION is None:
                _GLOBAL_CONNECTION = MongoConnection(db_type).connect()
    return _GLOBAL_CONNECTION


def close_global_connection() -> None:
    """Close and clear the global connection if present."""
    global _GLOBAL_CONNECTION
    with _GLOBAL_LOCK:
        if _GLOBAL_CONNECTION is not None:
            try:
                _GLOBAL_CONNECTION.disconnect()
            finally:
                _GLOBAL_CONNECTION = None


atexit.register(close_global_connection)
