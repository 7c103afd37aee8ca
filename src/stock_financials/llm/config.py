"""
Configuration settings for the Requesty chat router client
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class RequestyConfig:
    """Configuration class for Requesty API settings"""

    API_KEY: str = os.getenv("REQUESTY_API_KEY", "")
    CHAT_URL: str = "https://router.requesty.ai/v1/chat/completions"
    MODELS_URL: str = "https://router.requesty.ai/v1/models"

    MODELS_CACHE_HOURS: float = 12.0
    RETRY_DELAY: float = 1.0  # seconds between fallback attempts
    REQUEST_TIMEOUT: int = 120  # seconds

    @property
    def headers(self) -> dict:
        if not self.API_KEY:
            raise ValueError("API key for Requesty is missing")
        return {
            "Authorization": f"Bearer {self.API_KEY}",
            "Content-Type": "application/json",
        }

    @classmethod
    def from_env(cls) -> "RequestyConfig":
        """Create configuration from environment variables"""
        return cls(API_KEY=os.getenv("REQUESTY_API_KEY", ""))


# Global configuration instance
requesty_config = RequestyConfig.from_env()
