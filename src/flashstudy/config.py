"""Runtime configuration read from the environment (and an optional .env file)."""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from flashstudy.db import DEFAULT_DB_PATH

DEFAULT_USER = "local"
DEFAULT_API_TIMEOUT = 60.0


@dataclass
class Config:
    db_path: str = DEFAULT_DB_PATH
    user_id: str = DEFAULT_USER
    api_url: Optional[str] = None
    api_key: Optional[str] = None
    api_timeout: float = DEFAULT_API_TIMEOUT
    log_level: str = "WARNING"

    @property
    def generation_enabled(self) -> bool:
        return bool(self.api_url)


def load_config(env: Optional[dict] = None) -> Config:
    """Build a Config from environment variables.

    When ``env`` is given it is used instead of ``os.environ`` and no .env
    file is loaded.
    """
    if env is None:
        load_dotenv()
        env = os.environ
    timeout = env.get("FLASHSTUDY_API_TIMEOUT")
    return Config(
        db_path=env.get("FLASHSTUDY_DB_PATH") or DEFAULT_DB_PATH,
        user_id=env.get("FLASHSTUDY_USER") or DEFAULT_USER,
        api_url=env.get("FLASHSTUDY_API_URL") or None,
        api_key=env.get("FLASHSTUDY_API_KEY") or None,
        api_timeout=float(timeout) if timeout else DEFAULT_API_TIMEOUT,
        log_level=(env.get("FLASHSTUDY_LOG_LEVEL") or "WARNING").upper(),
    )
