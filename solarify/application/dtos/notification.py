"""DTOs for in-app notifications."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class NotificationResult:
    """Notification read-model."""

    id: str
    user_id: str
    type: str
    title: str
    message: str
    is_read: bool
    created_at: datetime
    action_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
