"""Contact form schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ContactMessageRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    email: EmailStr
    category: str = Field(..., min_length=1, max_length=100)
    subject: str = Field(..., min_length=5, max_length=300)
    message: str = Field(..., min_length=10, max_length=10000)


class ContactSubmittedResponse(BaseModel):
    id: str
    message: str = "Message received"


class ContactMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    category: str
    subject: str
    message: str
    status: str
    timestamp: datetime
