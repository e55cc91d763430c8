"""
Conversation history models
Append-only per-user chat log, one document per message.
"""
from datetime import datetime
from typing import Literal

from beanie import Document
from pydantic import Field


class Conversation(Document):
    owner_id: str
    conversation_id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "conversations"
        indexes = [
            [("owner_id", 1), ("conversation_id", 1)],
            "updated_at",
        ]


class ConversationMessage(Document):
    owner_id: str
    conversation_id: str
    role: Literal["user", "assistant"]
    content: str
    speak_language: str
    answer_language: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "conversation_messages"
        indexes = [
            [("owner_id", 1), ("conversation_id", 1), ("created_at", 1)],
        ]
