"""Public contact form and admin triage."""

from __future__ import annotations

import logging

from solarify.application.dtos.contact import ContactMessageResult
from solarify.application.interfaces.repositories import IContactMessageRepository
from solarify.domain.exceptions import ResourceNotFoundException, ValidationException
from solarify.shared.utils.sanitization import sanitize_text

logger = logging.getLogger(__name__)

# Minimum lengths after sanitization
MIN_NAME_LENGTH = 2
MIN_SUBJECT_LENGTH = 5
MIN_MESSAGE_LENGTH = 10


class ContactService:
    """Submit, list and mark contact messages."""

    def __init__(self, contact_repo: IContactMessageRepository) -> None:
        self.contact_repo = contact_repo

    async def submit(
        self, name: str, email: str, category: str, subject: str, message: str
    ) -> str:
        """Sanitize and store a message; returns its id."""
        clean = {
            "name": sanitize_text(name) or "",
            "category": sanitize_text(category) or "",
            "subject": sanitize_text(subject) or "",
            "message": sanitize_text(message) or "",
        }
        if len(clean["name"]) < MIN_NAME_LENGTH:
            raise ValidationException("Name must be at least 2 characters", field="name")
        if not clean["category"]:
            raise ValidationException("Category is required", field="category")
        if len(clean["subject"]) < MIN_SUBJECT_LENGTH:
            raise ValidationException("Subject must be at least 5 characters", field="subject")
        if len(clean["message"]) < MIN_MESSAGE_LENGTH:
            raise ValidationException("Message must be at least 10 characters", field="message")
        message_id = await self.contact_repo.create(email=email.strip().lower(), **clean)
        logger.info("Contact message %s received (%s)", message_id, clean["category"])
        return message_id

    async def list_messages(self, limit: int = 100) -> list[ContactMessageResult]:
        return await self.contact_repo.list_messages(limit)

    async def mark_read(self, message_id: str) -> None:
        if not await self.contact_repo.mark_read(message_id):
            raise ResourceNotFoundException("contact_message", message_id)
