from datetime import datetime
from typing import Any, Dict, List, Optional

from schemas.product import CamelBase


# One audit entry (checkout, cart change, admin action)
class LogOut(CamelBase):
    id: int
    ts: Optional[datetime] = None
    actor: Optional[str] = None
    action: str
    resource: str
    status: str
    ip: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None


class LogPage(CamelBase):
    items: List[LogOut]
    total: int
    page: int
    page_size: int


# Outcome counts for one action, e.g. how many checkouts failed
class ActionSummary(CamelBase):
    action: str
    success: int = 0
    fail: int = 0


class LogSummary(CamelBase):
    actions: List[ActionSummary]
