"""
Ask endpoint schemas
Request payload, buffered response body and event-stream frames.
Field names follow the web client's camelCase wire format.
"""
from dataclasses import dataclass, field
from typing import List, Literal, Optional

from pydantic import BaseModel


class HistoryMessage(BaseModel):
    """One prior chat message supplied by the client"""
    role: Literal["user", "assistant", "system"]
    content: str


@dataclass
class AskForm:
    """Raw fields of an incoming ask request"""
    conversation_id: str = ""
    speak_language: str = ""
    answer_language: str = ""
    uid: str = ""
    text: str = ""
    audio: Optional[bytes] = None
    history: List[HistoryMessage] = field(default_factory=list)


@dataclass
class AskTurn:
    """A validated request with its resolved input text"""
    conversation_id: str
    speak_language: str
    answer_language: str
    transcript: str
    history: List[HistoryMessage]
    owner_id: Optional[str] = None


class AskResult(BaseModel):
    """Buffered response body"""
    conversationId: str
    transcript: str
    text: str
    audioBase64: str = ""


class ErrorBody(BaseModel):
    error: str
    message: str


# ---------- Stream frames ----------

class DeltaFrame(BaseModel):
    type: Literal["delta"] = "delta"
    delta: str


class MessageEndFrame(BaseModel):
    type: Literal["message_end"] = "message_end"


class TtsFrame(BaseModel):
    type: Literal["tts"] = "tts"
    audioBase64: str


class TtsErrorFrame(BaseModel):
    type: Literal["tts_error"] = "tts_error"
    message: str


class ErrorFrame(BaseModel):
    type: Literal["error"] = "error"
    error: str
    message: str


class DoneFrame(BaseModel):
    type: Literal["done"] = "done"
    transcript: str
    text: str
