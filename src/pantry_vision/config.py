import os

import httpx
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel


class ClientSettings(BaseModel):
    api_url: str = "http://localhost:8000"
    timeout: float = 60.0
    camera_index: int = 0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ClientSettings":
        """Read PANTRY_VISION_* variables, loading a .env file first if present."""
        load_dotenv(find_dotenv(usecwd=True))
        defaults = cls()
        return cls(
            api_url=os.getenv("PANTRY_VISION_API_URL", defaults.api_url),
            timeout=os.getenv("PANTRY_VISION_TIMEOUT", defaults.timeout),
            camera_index=os.getenv("PANTRY_VISION_CAMERA_INDEX", defaults.camera_index),
            log_level=os.getenv("PANTRY_VISION_LOG_LEVEL", defaults.log_level).upper(),
        )

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout)
