# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Dict, List, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./database_storefront.db"
    LOG_LEVEL: str = "INFO"

    # Admin dashboard gate
    ADMIN_TOKEN: str = ""

    # Outbound order notification (e-mail relay / webhook)
    NOTIFICATION_URL: str = ""
    NOTIFICATION_TIMEOUT: float = 10.0
    CURRENCY: str = "MAD"

    # Product image storage
    UPLOAD_DIR: str = "static/uploads"

    FRONTEND_URL: Optional[str] = None

    # Largest quantity accepted for one order line
    MAX_LINE_QUANTITY: int = 9999

    # Admin listing caps
    ORDERS_PAGE_SIZE: int = 100
    STATS_SCAN_LIMIT: int = 1000

    # Optional allow-list of status transitions, e.g. {"ordered": ["confirmed", "cancelled"]}.
    # Unset means any status may follow any other.
    ORDER_STATUS_TRANSITIONS: Optional[Dict[str, List[str]]] = None

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
