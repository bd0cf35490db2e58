"""DTOs for contact form submissions (Realtime Database)."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ContactMessageResult:
    """Contact message read-model."""

    id: str
    name: str
    email: str
    category: str
    subject: str
    message: str
    status: str
    timestamp: datetime
