from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class NotificationType(str, Enum):
    ALERT = "alert"
    INFO = "info"
    SUCCESS = "success"


@dataclass(frozen=True)
class Notification:
    id: str
    message: str
    type: NotificationType
    timestamp: datetime
    is_read: bool = False
    link: Optional[str] = None
