# findme/models/message.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class MessageIn(BaseModel):
    message: str = Field(..., min_length=1)

    @field_validator("message", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class Message(BaseModel):
    id: str
    sender_id: str
    receiver_id: str
    message: str
    created_at: datetime
    is_read: bool = False


class ConversationSummary(BaseModel):
    partner_id: str
    partner_name: str
    last_message_text: Optional[str] = None
    last_message_time: Optional[datetime] = None
    unread_count: int = 0


class PartnerInfo(BaseModel):
    id: str
    name: Optional[str] = None
    company_name: Optional[str] = None


class ConversationDetail(BaseModel):
    partner: PartnerInfo
    messages: List[Message] = Field(default_factory=list)
