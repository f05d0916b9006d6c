"""
站内通知实体
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Notification:
    id: Optional[int]
    buyer_id: str
    message: str
    image_url: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None
